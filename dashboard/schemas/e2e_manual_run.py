from datetime import datetime
from pydantic import BaseModel, Field


class E2EManualRunCreate(BaseModel):
    app_id: int = Field(..., gt=0)


class E2EManualRunResponse(BaseModel):
    id: int
    app_id: int
    pipeline_id: str
    created_at: datetime

    model_config = {"from_attributes": True}
