"""
Cron jobs.

Usage:
    python -m dashboard.scheduler

Each job's crontab expression comes from settings (CRON_*).
"""

import logging
from typing import Callable

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from dashboard.core.config import settings
from dashboard.core.logging_config import setup_logging
from dashboard.jobs import (
    clean_up_data_files,
    delete_completed_todos,
    manual_tickets_reminder,
    pull_requests_management,
    report_e2e,
    run_job,
)
from dashboard.services.http import close_shared_clients

logger = logging.getLogger(__name__)


def job_definitions() -> list[tuple[str, str, Callable[[], object]]]:
    return [
        ("report_e2e", settings.CRON_REPORT_E2E, report_e2e.run),
        ("pull_requests_management", settings.CRON_PULL_REQUESTS_MANAGEMENT, pull_requests_management.run),
        ("manual_tickets_reminder", settings.CRON_MANUAL_TICKETS_REMINDER, manual_tickets_reminder.run),
        ("delete_completed_todos", settings.CRON_DELETE_COMPLETED_TODOS, delete_completed_todos.run),
        ("clean_up_data_files", settings.CRON_CLEAN_UP_DATA_FILES, clean_up_data_files.run),
    ]


def register_jobs(scheduler: BaseScheduler) -> None:
    for job_id, schedule, func in job_definitions():
        scheduler.add_job(
            func=run_job,
            args=[job_id, func],
            trigger=CronTrigger.from_crontab(schedule, timezone=settings.CRON_TIMEZONE),
            id=job_id,
            name=f"{job_id} ({schedule})",
            replace_existing=True,
        )
        logger.info("Scheduled %s with '%s'", job_id, schedule, extra={"job": job_id})


def main() -> None:
    setup_logging()
    scheduler = BlockingScheduler(timezone=settings.CRON_TIMEZONE)
    register_jobs(scheduler)
    logger.info("Scheduler starting")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
    finally:
        close_shared_clients()


if __name__ == "__main__":
    main()
