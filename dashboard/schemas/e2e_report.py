from datetime import date as calendar_date, datetime
from typing import Optional, List
from pydantic import AliasChoices, BaseModel, Field

from dashboard.schemas.application import ApplicationResponse
from dashboard.schemas.e2e_manual_run import E2EManualRunResponse


class E2EReportSummaryResponse(BaseModel):
    id: Optional[int] = None
    date: calendar_date
    status: str
    total_runs: int = 0
    passed_runs: int = 0
    failed_runs: int = 0
    success_rate: float = 0.0

    model_config = {"from_attributes": True}


class E2EReportDetailResponse(BaseModel):
    id: int
    report_summary_id: int
    app_id: int
    total_runs: int
    passed_runs: int
    failed_runs: int
    success_rate: float
    last_run_status: str
    last_failed_run_at: Optional[datetime] = None
    last_run_at: datetime
    app: Optional[ApplicationResponse] = None
    manual_runs: Optional[List[E2EManualRunResponse]] = None

    model_config = {"from_attributes": True}


class E2EReportResponse(BaseModel):
    summary: E2EReportSummaryResponse
    details: List[E2EReportDetailResponse] = []
    message: Optional[str] = None


class E2EReportEnrichments(BaseModel):
    include_details: bool = Field(True, validation_alias=AliasChoices("include_details", "includeDetails"))
    include_app_info: bool = Field(True, validation_alias=AliasChoices("include_app_info", "includeAppInfo"))
    include_manual_runs: bool = Field(True, validation_alias=AliasChoices("include_manual_runs", "includeManualRuns"))
