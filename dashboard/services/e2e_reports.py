import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dashboard.core.config import settings
from dashboard.core.errors import ExternalServiceError, NotFound
from dashboard.models.application import Application
from dashboard.models.e2e_report import E2EReportDetail, E2EReportSummary, ReportStatus
from dashboard.schemas.application import ApplicationResponse
from dashboard.schemas.e2e_manual_run import E2EManualRunResponse
from dashboard.schemas.e2e_report import (
    E2EReportDetailResponse,
    E2EReportEnrichments,
    E2EReportResponse,
    E2EReportSummaryResponse,
)
from dashboard.services import applications, e2e_manual_runs
from dashboard.services.cypress import CypressClient, get_cypress_client
from dashboard.services.publisher import publish_e2e_report_request

logger = logging.getLogger(__name__)

RUN_PASSED = "passed"
RUN_FAILED = "failed"
RUN_NO_TESTS = "noTests"

PENDING_MESSAGE = "Report is being generated. Please check back later."
FAILED_MESSAGE = "Report generation failed. Request it again with force=true to retry."


@dataclass
class AppRunStats:
    app_id: int
    total_runs: int
    passed_runs: int
    failed_runs: int
    success_rate: float
    last_run_status: str
    last_failed_run_at: Optional[datetime]
    last_run_at: datetime


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a Cypress ISO-8601 timestamp into a naive UTC datetime."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def success_rate(passed: int, total: int) -> float:
    return passed / total if total > 0 else 0.0


def run_status(rows: Iterable[dict]) -> str:
    """A run passed when every spec that had tests passed."""
    statuses = [row.get("status") for row in rows if row.get("status") != RUN_NO_TESTS]
    return RUN_PASSED if all(s == RUN_PASSED for s in statuses) else RUN_FAILED


def aggregate_app_runs(app_id: int, rows: list[dict], now: Optional[datetime] = None) -> AppRunStats:
    """Collapse spec-level rows of one project into per-run pass/fail statistics.

    Rows are grouped by ``run_number`` (rows without one are ignored) and the
    groups are walked from the most recent run number to the oldest.
    """
    runs_by_number: dict[int, list[dict]] = defaultdict(list)
    for row in rows:
        run_number = row.get("run_number")
        if not run_number:
            continue
        runs_by_number[int(run_number)].append(row)

    passed = 0
    failed = 0
    last_failed_run_at: Optional[datetime] = None
    last_run_status = RUN_NO_TESTS
    last_run_at = now or datetime.utcnow()

    run_numbers = sorted(runs_by_number, reverse=True)
    for run_number in run_numbers:
        group = runs_by_number[run_number]
        if run_status(group) == RUN_PASSED:
            passed += 1
        else:
            failed += 1
            if last_failed_run_at is None:
                last_failed_run_at = parse_timestamp(group[0].get("created_at"))

    if run_numbers:
        latest = runs_by_number[run_numbers[0]]
        last_run_status = run_status(latest)
        last_run_at = parse_timestamp(latest[0].get("created_at")) or last_run_at

    total = passed + failed
    return AppRunStats(
        app_id=app_id,
        total_runs=total,
        passed_runs=passed,
        failed_runs=failed,
        success_rate=success_rate(passed, total),
        last_run_status=last_run_status,
        last_failed_run_at=last_failed_run_at,
        last_run_at=last_run_at,
    )


def fetch_app_reports(
    db: Session,
    report_date: date,
    cypress: CypressClient,
    app_ids: Optional[list[int]] = None,
) -> list[AppRunStats]:
    """Cypress statistics for the watched apps, or for ``app_ids`` when given.

    Cypress project names are matched against application names.
    """
    if app_ids is None:
        apps = applications.get_watching(db)
    else:
        apps = [app for app in (db.get(Application, app_id) for app_id in app_ids) if app is not None]

    if not apps:
        logger.warning("No applications to report on for %s", report_date, extra={"report_date": report_date})
        return []

    start_date = report_date - timedelta(days=settings.E2E_REPORT_LOOKBACK_DAYS)
    rows = cypress.get_daily_runs_per_project(
        [app.name for app in apps],
        start_date=start_date,
        end_date=report_date,
        branch=settings.CYPRESS_BRANCH,
    )

    rows_by_project: dict[str, list[dict]] = defaultdict(list)
    for row in rows:
        rows_by_project[row.get("project_name") or "unknown"].append(row)

    apps_by_name = {app.name: app for app in apps}
    results = []
    for project_name, project_rows in rows_by_project.items():
        app = apps_by_name.get(project_name)
        if app is None:
            logger.warning("No application matches Cypress project %s", project_name)
            continue
        results.append(aggregate_app_runs(app.id, project_rows))
    return results


def get_summary_by_date(db: Session, report_date: date) -> Optional[E2EReportSummary]:
    return db.execute(
        select(E2EReportSummary).where(E2EReportSummary.date == report_date)
    ).scalar_one_or_none()


def get_summary(db: Session, summary_id: int) -> E2EReportSummary:
    summary = db.get(E2EReportSummary, summary_id)
    if not summary:
        raise NotFound("Report summary not found")
    return summary


def _create_pending_summary(db: Session, report_date: date) -> tuple[E2EReportSummary, bool]:
    """Insert a pending summary; returns (summary, created).

    The unique date makes concurrent callers race on the insert. The loser
    gets the winner's row back with ``created`` False.
    """
    summary = E2EReportSummary(date=report_date, status=ReportStatus.pending.value)
    db.add(summary)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_summary_by_date(db, report_date)
        if existing is None:
            raise
        return existing, False
    db.refresh(summary)
    return summary, True


def _apply_stats(detail: E2EReportDetail, stats: AppRunStats) -> None:
    detail.total_runs = stats.total_runs
    detail.passed_runs = stats.passed_runs
    detail.failed_runs = stats.failed_runs
    detail.success_rate = stats.success_rate
    detail.last_run_status = stats.last_run_status
    detail.last_failed_run_at = stats.last_failed_run_at
    detail.last_run_at = stats.last_run_at


def generate_report(
    db: Session,
    report_date: date,
    cypress: Optional[CypressClient] = None,
    request_id: Optional[str] = None,
) -> Optional[E2EReportSummary]:
    """Build (or rebuild) the summary and per-app details for ``report_date``.

    A ready summary is left untouched. Failures mark the summary failed and
    are not raised. Returns None when the summary was deleted while it was
    being generated.
    """
    log_extra = {"report_date": report_date, "request_id": request_id}
    summary = get_summary_by_date(db, report_date)
    if summary is not None and summary.status == ReportStatus.ready.value:
        logger.info("Report for %s already ready, skipping", report_date, extra=log_extra)
        return summary
    if summary is None:
        summary, _ = _create_pending_summary(db, report_date)

    try:
        stats = fetch_app_reports(db, report_date, cypress or get_cypress_client())

        db.execute(delete(E2EReportDetail).where(E2EReportDetail.report_summary_id == summary.id))
        for app_stats in stats:
            detail = E2EReportDetail(report_summary_id=summary.id, app_id=app_stats.app_id)
            _apply_stats(detail, app_stats)
            db.add(detail)

        summary.total_runs = sum(s.total_runs for s in stats)
        summary.passed_runs = sum(s.passed_runs for s in stats)
        summary.failed_runs = sum(s.failed_runs for s in stats)
        summary.success_rate = success_rate(summary.passed_runs, summary.total_runs)
        summary.status = ReportStatus.ready.value
        db.commit()
        db.expire(summary, ["details"])

        logger.info(
            "Report for %s ready: %d apps, %d runs, %.2f%% success",
            report_date, len(stats), summary.total_runs, summary.success_rate * 100,
            extra=log_extra,
        )
    except Exception as e:
        logger.exception("Report generation for %s failed: %s", report_date, e, extra=log_extra)
        db.rollback()
        return _mark_failed(db, report_date, log_extra)

    return summary


def _mark_failed(db: Session, report_date: date, log_extra: dict) -> Optional[E2EReportSummary]:
    # A forced regeneration may have deleted the summary in the meantime
    try:
        summary = get_summary_by_date(db, report_date)
        if summary is None:
            logger.warning("Report for %s was removed during generation", report_date, extra=log_extra)
            return None
        summary.status = ReportStatus.failed.value
        db.commit()
        return summary
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Could not mark report for %s as failed: %s", report_date, e, extra=log_extra)
        return None


def request_report(db: Session, redis: Redis, report_date: date, force: bool = False) -> E2EReportSummary:
    """Return the summary for ``report_date``, queueing generation when needed.

    ``force`` drops an existing summary (and its details) first. Only the
    caller that inserts the pending summary publishes a generation request.
    """
    summary = get_summary_by_date(db, report_date)
    if summary is not None and force:
        logger.info("Forcing regeneration of report for %s", report_date, extra={"report_date": report_date})
        db.delete(summary)
        db.commit()
        summary = None

    if summary is not None:
        return summary

    summary, created = _create_pending_summary(db, report_date)
    if created:
        try:
            publish_e2e_report_request(redis, report_date)
        except RedisError as e:
            logger.error("Could not queue report for %s: %s", report_date, e, extra={"report_date": report_date})
            db.delete(summary)
            db.commit()
            raise ExternalServiceError("Redis", "could not queue report generation")
    return summary


def pending_response(report_date: date) -> E2EReportResponse:
    return E2EReportResponse(
        summary=E2EReportSummaryResponse(date=report_date, status=ReportStatus.pending.value),
        details=[],
        message=PENDING_MESSAGE,
    )


def build_report_response(
    db: Session, summary: E2EReportSummary, enrichments: E2EReportEnrichments
) -> E2EReportResponse:
    message = FAILED_MESSAGE if summary.status == ReportStatus.failed.value else None
    response = E2EReportResponse(
        summary=E2EReportSummaryResponse.model_validate(summary),
        message=message,
    )
    if not enrichments.include_details:
        return response

    for detail in summary.details:
        item = E2EReportDetailResponse.model_validate(detail)
        item.app = ApplicationResponse.model_validate(detail.app) if enrichments.include_app_info else None
        if enrichments.include_manual_runs:
            runs = e2e_manual_runs.list_by_app(db, detail.app_id, summary.date, summary.date)
            item.manual_runs = [E2EManualRunResponse.model_validate(run) for run in runs]
        else:
            item.manual_runs = None
        response.details.append(item)
    return response


def refresh_app_status(
    db: Session,
    summary_id: int,
    app_id: int,
    cypress: Optional[CypressClient] = None,
) -> E2EReportDetail:
    """Re-read one app's Cypress runs for the summary date and update its detail."""
    detail = db.execute(
        select(E2EReportDetail)
        .where(E2EReportDetail.report_summary_id == summary_id)
        .where(E2EReportDetail.app_id == app_id)
    ).scalar_one_or_none()
    if detail is None:
        raise NotFound("Report detail not found")

    summary = get_summary(db, summary_id)
    stats = fetch_app_reports(db, summary.date, cypress or get_cypress_client(), app_ids=[app_id])
    if not stats:
        logger.info("No Cypress runs for app %d on %s", app_id, summary.date, extra={"app_id": app_id})
        return detail

    _apply_stats(detail, stats[0])
    db.commit()
    db.refresh(detail)
    return detail
