import logging
from datetime import date, datetime, time, timedelta

from redis import Redis
from redis.exceptions import LockError, RedisError
from sqlalchemy import select
from sqlalchemy.orm import Session

from dashboard.core.config import settings
from dashboard.core.errors import Conflict, DashboardError, NotFound, ValidationFailed
from dashboard.models.e2e_manual_run import E2EManualRun
from dashboard.models.notification import NotificationType
from dashboard.schemas.notification import NotificationCreate
from dashboard.services import applications
from dashboard.services.circle_ci import CircleCIClient, is_in_progress
from dashboard.services.publisher import publish_notification

logger = logging.getLogger(__name__)

RUN_IN_PROGRESS_MESSAGE = (
    "A manual run is already in progress for this app. "
    "Please wait for it to complete before starting a new one."
)
LOCK_KEY = "e2e:manual-run:lock:{app_id}"


def get_run(db: Session, run_id: int) -> E2EManualRun:
    run = db.get(E2EManualRun, run_id)
    if not run:
        raise NotFound("E2E manual run not found")
    return run


def list_by_app(
    db: Session,
    app_id: int,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[E2EManualRun]:
    query = select(E2EManualRun).where(E2EManualRun.app_id == app_id)
    if date_from is not None:
        query = query.where(E2EManualRun.created_at >= datetime.combine(date_from, time.min))
    if date_to is not None:
        query = query.where(E2EManualRun.created_at < datetime.combine(date_to + timedelta(days=1), time.min))
    query = query.order_by(E2EManualRun.created_at.desc(), E2EManualRun.id.desc())
    return list(db.execute(query).scalars().all())


def list_by_app_code(db: Session, code: str) -> list[E2EManualRun]:
    app = applications.get_application_by_code(db, code)
    return list_by_app(db, app.id)


def latest_run(db: Session, app_id: int) -> E2EManualRun | None:
    query = (
        select(E2EManualRun)
        .where(E2EManualRun.app_id == app_id)
        .order_by(E2EManualRun.created_at.desc(), E2EManualRun.id.desc())
        .limit(1)
    )
    return db.execute(query).scalar_one_or_none()


def ensure_no_run_in_progress(db: Session, circle_ci: CircleCIClient, app_id: int) -> None:
    """Raise Conflict when the app's latest manual run is still running in CI.

    A pipeline without workflows has only just been created and counts as
    running. A failed status lookup does not block a new run.
    """
    latest = latest_run(db, app_id)
    if latest is None:
        return
    try:
        workflow = circle_ci.get_pipeline_latest_workflow(latest.pipeline_id)
    except DashboardError as e:
        logger.warning(
            "Could not check status of pipeline %s, allowing new run: %s",
            latest.pipeline_id, e, extra={"app_id": app_id},
        )
        return
    if workflow is None:
        logger.info(
            "Pipeline %s of manual run %d has no workflow yet", latest.pipeline_id, latest.id,
            extra={"app_id": app_id},
        )
        raise Conflict(RUN_IN_PROGRESS_MESSAGE)
    if is_in_progress(workflow.status):
        logger.info(
            "Manual run %d for app %d is still %s", latest.id, app_id, workflow.status,
            extra={"app_id": app_id},
        )
        raise Conflict(RUN_IN_PROGRESS_MESSAGE)


def create_manual_run(db: Session, redis: Redis, circle_ci: CircleCIClient, app_id: int) -> E2EManualRun:
    app = applications.get_application(db, app_id)
    if not app.e2e_trigger_configuration:
        raise ValidationFailed(f"Application {app.code} has no e2e trigger configuration")

    # Serializes concurrent triggers for the same app across API processes
    lock = redis.lock(LOCK_KEY.format(app_id=app_id), timeout=settings.MANUAL_RUN_LOCK_SECONDS, blocking=False)
    if not lock.acquire():
        raise Conflict(RUN_IN_PROGRESS_MESSAGE)
    try:
        ensure_no_run_in_progress(db, circle_ci, app_id)
        pipeline = circle_ci.trigger_pipeline(app.e2e_trigger_configuration)

        run = E2EManualRun(app_id=app_id, pipeline_id=pipeline.id)
        db.add(run)
        db.commit()
        db.refresh(run)
    finally:
        try:
            lock.release()
        except LockError as e:
            logger.warning("Manual run lock for app %d already released: %s", app_id, e)

    logger.info("Manual run %d created for app %d (pipeline %s)", run.id, app_id, run.pipeline_id, extra={"app_id": app_id})

    try:
        publish_notification(
            redis,
            NotificationCreate(
                title="E2E Manual Run Started",
                message=f"A manual E2E run was triggered for {app.name}.",
                link="/e2e-dashboard",
                type=NotificationType.info,
            ),
        )
    except RedisError as e:
        logger.error("Could not publish manual run notification: %s", e, extra={"app_id": app_id})

    return run


def delete_run(db: Session, run_id: int) -> None:
    run = get_run(db, run_id)
    db.delete(run)
    db.commit()
