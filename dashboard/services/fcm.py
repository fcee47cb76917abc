import logging
from datetime import datetime

import firebase_admin
from firebase_admin import credentials, messaging
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from dashboard.core.config import settings
from dashboard.models.device_token import DeviceToken
from dashboard.models.notification import Notification

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "my-dashboard"


class PushSender:
    """Multicast push delivery through Firebase Cloud Messaging.

    The Firebase app is initialized on first use. When no credentials file
    is configured every send is skipped.
    """

    def __init__(self, credentials_path: str):
        self.credentials_path = credentials_path
        self._app: firebase_admin.App | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.credentials_path)

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
            except ValueError:
                cred = credentials.Certificate(self.credentials_path)
                self._app = firebase_admin.initialize_app(cred, name=FIREBASE_APP_NAME)
                logger.info("Firebase app initialized")
        return self._app

    def send(self, tokens: list[str], title: str, body: str, data: dict[str, str]) -> list[str]:
        """Send to every token; returns the tokens whose delivery failed."""
        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            data=data,
        )
        response = messaging.send_each_for_multicast(message, app=self._get_app())
        logger.info("Push sent: %d succeeded, %d failed", response.success_count, response.failure_count)
        return [
            token
            for token, result in zip(tokens, response.responses)
            if not result.success
        ]


_sender: PushSender | None = None


def get_push_sender() -> PushSender:
    global _sender
    if _sender is None:
        _sender = PushSender(settings.FIREBASE_CREDENTIALS_PATH)
    return _sender


def register_token(db: Session, token: str) -> DeviceToken:
    existing = db.execute(select(DeviceToken).where(DeviceToken.token == token)).scalar_one_or_none()
    if existing:
        existing.last_used = datetime.utcnow()
        db.commit()
        db.refresh(existing)
        return existing

    device = DeviceToken(token=token)
    db.add(device)
    db.commit()
    db.refresh(device)
    logger.info("Registered new device token")
    return device


def send_to_all_devices(db: Session, notification: Notification, sender: PushSender | None = None) -> int:
    """Push a notification to every registered device and prune failing tokens.

    Returns the number of devices the push was delivered to.
    """
    sender = sender or get_push_sender()
    if not sender.enabled:
        logger.debug("Push notifications disabled, skipping notification %d", notification.id)
        return 0

    tokens = list(db.execute(select(DeviceToken.token)).scalars().all())
    if not tokens:
        return 0

    failed = sender.send(
        tokens,
        title=notification.title,
        body=notification.message,
        data={"link": notification.link or "/", "type": notification.type},
    )
    if failed:
        db.execute(delete(DeviceToken).where(DeviceToken.token.in_(failed)))
        db.commit()
        logger.info("Removed %d invalid device tokens", len(failed))
    return len(tokens) - len(failed)
