import json
import logging
import uuid
from datetime import date

from redis import Redis

from dashboard.db.redis import (
    E2E_REPORT_CHANNEL,
    NOTIFICATION_CHANNEL,
    PULL_REQUEST_DELETE_CHANNEL,
)
from dashboard.schemas.notification import NotificationCreate

logger = logging.getLogger(__name__)


def publish(redis: Redis, channel: str, payload: dict) -> int:
    receivers = redis.publish(channel, json.dumps(payload, default=str))
    logger.info("Published message to %s (%s receivers)", channel, receivers, extra={"channel": channel})
    return receivers


def publish_notification(redis: Redis, notification: NotificationCreate) -> int:
    return publish(redis, NOTIFICATION_CHANNEL, notification.model_dump(mode="json"))


def publish_e2e_report_request(redis: Redis, report_date: date, request_id: str | None = None) -> str:
    request_id = request_id or str(uuid.uuid4())
    publish(redis, E2E_REPORT_CHANNEL, {"date": report_date.isoformat(), "request_id": request_id})
    return request_id


def publish_pull_request_deletion(
    redis: Redis,
    pr_id: int,
    pull_request_number: int,
    repository: str,
    reason: str,
) -> int:
    return publish(
        redis,
        PULL_REQUEST_DELETE_CHANNEL,
        {
            "id": pr_id,
            "pull_request_number": pull_request_number,
            "repository": repository,
            "reason": reason,
        },
    )
