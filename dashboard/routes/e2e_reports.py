import json
import re
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import ValidationError
from redis import Redis
from sqlalchemy.orm import Session

from dashboard.core.dependencies import RequireApiKey
from dashboard.db.redis import get_redis
from dashboard.db.session import get_db
from dashboard.models.e2e_report import ReportStatus
from dashboard.schemas.e2e_report import E2EReportDetailResponse, E2EReportEnrichments, E2EReportResponse
from dashboard.services import e2e_reports
from dashboard.services.cypress import CypressClient, get_cypress_client

router = APIRouter(prefix="/api/e2e_run_report", tags=["e2e_run_report"], dependencies=[RequireApiKey])

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_report_date(value: Optional[str]) -> date:
    if value is None:
        return datetime.utcnow().date()
    if not DATE_PATTERN.match(value):
        raise HTTPException(status_code=400, detail="Invalid date format. Expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format. Expected YYYY-MM-DD")


def parse_enrichments(value: Optional[str]) -> E2EReportEnrichments:
    if not value:
        return E2EReportEnrichments()
    try:
        parsed = json.loads(value)
        if not isinstance(parsed, dict):
            raise ValueError("not an object")
        return E2EReportEnrichments.model_validate(parsed)
    except (ValueError, ValidationError):
        raise HTTPException(status_code=400, detail="Invalid enrichments format. Expected JSON object")


@router.get("", response_model=E2EReportResponse, responses={202: {"model": E2EReportResponse}})
def get_report(
    response: Response,
    report_date: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today (UTC)"),
    enrichments: Optional[str] = Query(None, description="JSON object of include_* flags"),
    force: Optional[str] = Query(None, description="'true' or '1' regenerates the report"),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    parsed_date = parse_report_date(report_date)
    parsed_enrichments = parse_enrichments(enrichments)

    summary = e2e_reports.request_report(db, redis, parsed_date, force=force in ("true", "1"))
    if summary.status == ReportStatus.pending.value:
        response.status_code = 202
        return e2e_reports.pending_response(parsed_date)
    return e2e_reports.build_report_response(db, summary, parsed_enrichments)


@router.get("/{summary_id}/{app_id}", response_model=E2EReportDetailResponse)
def refresh_app_status(
    summary_id: int,
    app_id: int,
    db: Session = Depends(get_db),
    cypress: CypressClient = Depends(get_cypress_client),
):
    return e2e_reports.refresh_app_status(db, summary_id, app_id, cypress)
