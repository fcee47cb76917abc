import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from redis import Redis
from redis.exceptions import RedisError

from dashboard.db.redis import get_redis_client
from dashboard.db.session import SessionLocal
from dashboard.models.notification import NotificationType
from dashboard.schemas.notification import NotificationCreate
from dashboard.services import pull_requests
from dashboard.services.github import GitHubClient, get_github_client
from dashboard.services.pull_requests import PullRequestWithDetails
from dashboard.services.publisher import publish_notification, publish_pull_request_deletion

logger = logging.getLogger(__name__)

READY_TO_MERGE_STATES = ("clean", "unstable")
CONFLICT_STATES = ("dirty",)
REMINDER_DAYS = 3
URGENT_REMINDER_DAYS = 7
PULL_REQUESTS_LINK = "/pull_requests"


@dataclass
class ManagementResult:
    fetched: int = 0
    errors: int = 0
    notifications: list[str] = field(default_factory=list)
    deletion_requests: int = 0


def _numbers(prs: list[PullRequestWithDetails]) -> str:
    return ", ".join(f"#{pr.details.number}" for pr in prs)


def _there_are(size: int) -> str:
    return f"There {'are' if size > 1 else 'is'} {size} pull request{'s' if size > 1 else ''}"


def age_in_days(created_at: datetime, now: datetime) -> int:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (now - created_at).days


def merge_status_notifications(open_prs: list[PullRequestWithDetails]) -> list[NotificationCreate]:
    ready = [pr for pr in open_prs if pr.details.mergeable_state in READY_TO_MERGE_STATES]
    conflicts = [pr for pr in open_prs if pr.details.mergeable_state in CONFLICT_STATES]

    result = []
    if ready:
        result.append(NotificationCreate(
            title="Pull Requests Ready to Merge",
            message=f"{_there_are(len(ready))} ready to merge: {_numbers(ready)}.",
            type=NotificationType.info,
            link=PULL_REQUESTS_LINK,
        ))
    if conflicts:
        result.append(NotificationCreate(
            title="Pull Requests with Conflicts",
            message=f"{_there_are(len(conflicts))} with merge conflicts: {_numbers(conflicts)}.",
            type=NotificationType.warning,
            link=PULL_REQUESTS_LINK,
        ))
    return result


def age_reminder_notifications(
    open_prs: list[PullRequestWithDetails], now: datetime
) -> list[NotificationCreate]:
    three_days: list[PullRequestWithDetails] = []
    seven_days: list[PullRequestWithDetails] = []
    for pr in open_prs:
        age = age_in_days(pr.details.created_at, now)
        if age >= URGENT_REMINDER_DAYS:
            seven_days.append(pr)
        elif age >= REMINDER_DAYS:
            three_days.append(pr)

    def _has_been_open(size: int) -> str:
        return f"{size} pull request{'s' if size > 1 else ''} {'have' if size > 1 else 'has'} been open"

    result = []
    if three_days:
        result.append(NotificationCreate(
            title="Pull Requests Reminder (3+ days old)",
            message=f"{_has_been_open(len(three_days))} for 3+ days: {_numbers(three_days)}",
            type=NotificationType.info,
            link=PULL_REQUESTS_LINK,
        ))
    if seven_days:
        result.append(NotificationCreate(
            title="Pull Requests Reminder (7+ days old)",
            message=f"{_has_been_open(len(seven_days))} for 7+ days: {_numbers(seven_days)}. Please review!",
            type=NotificationType.warning,
            link=PULL_REQUESTS_LINK,
        ))
    return result


def run(
    redis: Redis | None = None,
    github: GitHubClient | None = None,
    now: datetime | None = None,
) -> ManagementResult:
    """Notify about mergeable, conflicting and stale pull requests; drop merged ones.

    GitHub is queried once per tracked pull request.
    """
    redis = redis or get_redis_client()
    github = github or get_github_client()
    now = now or datetime.now(timezone.utc)

    db = SessionLocal()
    try:
        prs, errors = pull_requests.get_all_with_details(db, github)
    finally:
        db.close()

    result = ManagementResult(fetched=len(prs), errors=len(errors))
    if errors:
        logger.warning("Failed to fetch details for %d pull request(s)", len(errors))
    if not prs:
        logger.info("No pull requests to manage")
        return result

    open_prs = [pr for pr in prs if pr.details.state == "open" and not pr.details.merged]
    merged_prs = [pr for pr in prs if pr.details.merged]
    logger.info("Open pull requests: %d, merged: %d", len(open_prs), len(merged_prs))

    for notification in merge_status_notifications(open_prs) + age_reminder_notifications(open_prs, now):
        publish_notification(redis, notification)
        result.notifications.append(notification.title)

    for pr in merged_prs:
        try:
            publish_pull_request_deletion(
                redis,
                pr.pull_request.id,
                pr.details.number,
                pr.pull_request.repository,
                reason=f"Merged at {pr.details.merged_at.isoformat() if pr.details.merged_at else 'unknown'}",
            )
        except RedisError as e:
            logger.error("Could not request deletion of #%d: %s", pr.details.number, e)
            continue
        result.deletion_requests += 1

    return result
