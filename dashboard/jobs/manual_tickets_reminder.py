import logging

from redis import Redis

from dashboard.db.redis import get_redis_client
from dashboard.models.notification import NotificationType
from dashboard.schemas.notification import NotificationCreate
from dashboard.services.jira import JiraClient, get_jira_client, get_manual_qa_issues
from dashboard.services.publisher import publish_notification

logger = logging.getLogger(__name__)


def reminder_message(size: int) -> str:
    plural = size > 1
    return (
        f"There {'are' if plural else 'is'} {size} ticket{'s' if plural else ''} "
        f"that need{'' if plural else 's'} attention."
    )


def run(redis: Redis | None = None, jira: JiraClient | None = None) -> int:
    """Warn when manual QA tickets are waiting; returns how many there are."""
    issues = get_manual_qa_issues(jira or get_jira_client()).issues
    size = len(issues)
    if size == 0:
        logger.info("No manual testing tickets waiting")
        return 0

    publish_notification(
        redis or get_redis_client(),
        NotificationCreate(
            title="Manual Testing Tickets - Reminder",
            message=reminder_message(size),
            type=NotificationType.warning,
            link="/",
        ),
    )
    return size
