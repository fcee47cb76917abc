import logging
from datetime import datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dashboard.core.errors import Conflict, DashboardError, NotFound
from dashboard.models.application import Application
from dashboard.models.e2e_manual_run import E2EManualRun
from dashboard.schemas.application import (
    ApplicationCreate,
    ApplicationDetailsResponse,
    ApplicationResponse,
    ApplicationUpdate,
    LastManualRun,
)
from dashboard.services.circle_ci import CircleCIClient

logger = logging.getLogger(__name__)


def list_applications(db: Session, watching: bool | None = None) -> list[Application]:
    query = select(Application)
    if watching is not None:
        query = query.where(Application.watching.is_(watching))
    query = query.order_by(Application.name.asc(), Application.id.asc())
    return list(db.execute(query).scalars().all())


def get_watching(db: Session) -> list[Application]:
    return list_applications(db, watching=True)


def get_application(db: Session, app_id: int) -> Application:
    app = db.get(Application, app_id)
    if not app:
        raise NotFound("Application not found")
    return app


def get_application_by_code(db: Session, code: str) -> Application:
    app = db.execute(select(Application).where(Application.code == code)).scalar_one_or_none()
    if not app:
        raise NotFound("Application not found")
    return app


def create_application(db: Session, data: ApplicationCreate) -> Application:
    app = Application(**data.model_dump())
    db.add(app)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"An application with code '{data.code}' already exists")
    db.refresh(app)
    return app


def update_application(db: Session, app_id: int, data: ApplicationUpdate) -> Application:
    app = get_application(db, app_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(app, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"An application with code '{data.code}' already exists")
    db.refresh(app)
    return app


def delete_application(db: Session, app_id: int) -> None:
    app = get_application(db, app_id)
    db.delete(app)
    db.commit()


def _todays_runs(db: Session, app_id: int) -> list[E2EManualRun]:
    start = datetime.combine(datetime.utcnow().date(), time.min)
    end = start + timedelta(days=1)
    query = (
        select(E2EManualRun)
        .where(E2EManualRun.app_id == app_id)
        .where(E2EManualRun.created_at >= start)
        .where(E2EManualRun.created_at < end)
        .order_by(E2EManualRun.created_at.desc(), E2EManualRun.id.desc())
    )
    return list(db.execute(query).scalars().all())


def get_application_details(
    db: Session, app: Application, circle_ci: CircleCIClient | None
) -> ApplicationDetailsResponse:
    """Application plus today's manual run count and the latest run's CI status."""
    runs = _todays_runs(db, app.id)
    details = ApplicationDetailsResponse(
        **ApplicationResponse.model_validate(app).model_dump(),
        e2e_runs_quantity=len(runs),
    )
    if not runs or circle_ci is None:
        return details

    latest = runs[0]
    try:
        workflow = circle_ci.get_pipeline_latest_workflow(latest.pipeline_id)
    except DashboardError as e:
        logger.warning("Could not load workflow for pipeline %s: %s", latest.pipeline_id, e, extra={"app_id": app.id})
        return details
    if workflow is None:
        return details

    details.last_run = LastManualRun(
        id=latest.id,
        status=workflow.status,
        url=circle_ci.workflow_url(workflow),
        pipeline_id=latest.pipeline_id,
        created_at=latest.created_at,
    )
    return details
