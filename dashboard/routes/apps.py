from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dashboard.core.dependencies import RequireApiKey
from dashboard.db.session import get_db
from dashboard.schemas.application import (
    ApplicationCreate,
    ApplicationDetailsResponse,
    ApplicationResponse,
    ApplicationUpdate,
)
from dashboard.services import applications
from dashboard.services.circle_ci import CircleCIClient, get_optional_circle_ci_client

router = APIRouter(prefix="/api/apps", tags=["apps"], dependencies=[RequireApiKey])


@router.get("", response_model=list[ApplicationResponse])
def list_apps(
    db: Session = Depends(get_db),
    watching: Optional[bool] = Query(None, description="Only apps with this watching flag"),
):
    return applications.list_applications(db, watching=watching)


@router.get("/code/{code}", response_model=ApplicationDetailsResponse)
def get_app_by_code(
    code: str,
    db: Session = Depends(get_db),
    circle_ci: Optional[CircleCIClient] = Depends(get_optional_circle_ci_client),
):
    app = applications.get_application_by_code(db, code)
    return applications.get_application_details(db, app, circle_ci)


@router.get("/{app_id}", response_model=ApplicationDetailsResponse)
def get_app(
    app_id: int,
    db: Session = Depends(get_db),
    circle_ci: Optional[CircleCIClient] = Depends(get_optional_circle_ci_client),
):
    app = applications.get_application(db, app_id)
    return applications.get_application_details(db, app, circle_ci)


@router.post("", response_model=ApplicationResponse, status_code=201)
def create_app(body: ApplicationCreate, db: Session = Depends(get_db)):
    return applications.create_application(db, body)


@router.put("/{app_id}", response_model=ApplicationResponse)
def update_app(app_id: int, body: ApplicationUpdate, db: Session = Depends(get_db)):
    return applications.update_application(db, app_id, body)


@router.delete("/{app_id}", status_code=204)
def delete_app(app_id: int, db: Session = Depends(get_db)):
    applications.delete_application(db, app_id)
