import json
import logging
from datetime import date
from typing import Callable

from pydantic import ValidationError
from redis import Redis
from sqlalchemy.orm import Session

from dashboard.core.errors import DashboardError, NotFound
from dashboard.db.redis import (
    E2E_REPORT_CHANNEL,
    NOTIFICATION_CHANNEL,
    PULL_REQUEST_DELETE_CHANNEL,
)
from dashboard.db.session import SessionLocal
from dashboard.schemas.notification import NotificationCreate
from dashboard.services import e2e_reports, notifications, pull_requests

logger = logging.getLogger(__name__)

Handler = Callable[[Session, dict], None]


def handle_notification(db: Session, payload: dict) -> None:
    notifications.create_notification(db, NotificationCreate.model_validate(payload))


def handle_e2e_report(db: Session, payload: dict) -> None:
    e2e_reports.generate_report(
        db,
        date.fromisoformat(payload["date"]),
        request_id=payload.get("request_id"),
    )


def handle_pull_request_deletion(db: Session, payload: dict) -> None:
    pr_id = int(payload["id"])
    try:
        pull_requests.delete_pull_request(db, pr_id)
    except NotFound:
        logger.info("Pull request %d already removed", pr_id)
        return
    logger.info(
        "Deleted pull request %s#%s (%s)",
        payload.get("repository"), payload.get("pull_request_number"), payload.get("reason", "no reason"),
    )


HANDLERS: dict[str, Handler] = {
    NOTIFICATION_CHANNEL: handle_notification,
    E2E_REPORT_CHANNEL: handle_e2e_report,
    PULL_REQUEST_DELETE_CHANNEL: handle_pull_request_deletion,
}


class MessageProcessor:
    """Consumes the dashboard's Redis channels and dispatches each message.

    Every message is handled in its own database session. A bad message or a
    failing handler is logged and the loop carries on.
    """

    def __init__(
        self,
        redis: Redis,
        session_factory: Callable[[], Session] = SessionLocal,
        handlers: dict[str, Handler] | None = None,
    ):
        self.redis = redis
        self.session_factory = session_factory
        self.handlers = handlers if handlers is not None else dict(HANDLERS)

    def handle(self, channel: str, data: str | bytes) -> bool:
        """Process one message; returns True when the handler succeeded."""
        if isinstance(channel, bytes):
            channel = channel.decode()
        handler = self.handlers.get(channel)
        if handler is None:
            logger.warning("No handler for channel %s", channel, extra={"channel": channel})
            return False

        try:
            payload = json.loads(data)
            if not isinstance(payload, dict):
                raise ValueError("payload is not an object")
        except ValueError as e:
            logger.error("Malformed message on %s: %s", channel, e, extra={"channel": channel})
            return False

        db = self.session_factory()
        try:
            handler(db, payload)
            return True
        except (ValidationError, KeyError, ValueError) as e:
            logger.error("Invalid payload on %s: %s", channel, e, extra={"channel": channel})
        except DashboardError as e:
            logger.error("Handler for %s failed: %s", channel, e, extra={"channel": channel})
        except Exception as e:
            logger.exception("Unexpected error handling %s: %s", channel, e, extra={"channel": channel})
        finally:
            db.close()
        return False

    def run(self) -> None:
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(*self.handlers)
        logger.info("Subscribed to %s", ", ".join(self.handlers))
        try:
            for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                self.handle(message["channel"], message["data"])
        finally:
            pubsub.close()
