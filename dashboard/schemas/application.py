import json
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _normalize_trigger_configuration(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        raise ValueError("e2e_trigger_configuration must be valid JSON")
    return json.dumps(parsed, indent=2)


class ApplicationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=100)
    pipeline_url: Optional[str] = Field(None, max_length=500)
    e2e_trigger_configuration: Optional[str] = None
    watching: bool = False

    @field_validator("e2e_trigger_configuration")
    @classmethod
    def validate_trigger_configuration(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_trigger_configuration(v)


class ApplicationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=100)
    pipeline_url: Optional[str] = Field(None, max_length=500)
    e2e_trigger_configuration: Optional[str] = None
    watching: Optional[bool] = None

    @field_validator("e2e_trigger_configuration")
    @classmethod
    def validate_trigger_configuration(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_trigger_configuration(v)


class ApplicationResponse(BaseModel):
    id: int
    name: str
    code: str
    pipeline_url: Optional[str] = None
    e2e_trigger_configuration: Optional[str] = None
    watching: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LastManualRun(BaseModel):
    id: int
    status: str
    url: str
    pipeline_id: str
    created_at: datetime


class ApplicationDetailsResponse(ApplicationResponse):
    e2e_runs_quantity: int = 0
    last_run: Optional[LastManualRun] = None
