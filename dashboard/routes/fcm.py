from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dashboard.core.dependencies import RequireApiKey
from dashboard.db.session import get_db
from dashboard.schemas.notification import DeviceTokenRegister
from dashboard.services import fcm

router = APIRouter(prefix="/api/fcm", tags=["fcm"], dependencies=[RequireApiKey])


@router.post("/register-token")
def register_token(body: DeviceTokenRegister, db: Session = Depends(get_db)):
    device = fcm.register_token(db, body.token)
    return {"message": "Token registered successfully", "id": device.id}
