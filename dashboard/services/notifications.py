import logging

from firebase_admin.exceptions import FirebaseError
from sqlalchemy import select, func, update
from sqlalchemy.orm import Session

from dashboard.core.errors import NotFound
from dashboard.models.notification import Notification
from dashboard.schemas.notification import NotificationCreate
from dashboard.services.fcm import PushSender, send_to_all_devices

logger = logging.getLogger(__name__)


def get_notification(db: Session, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if not notification:
        raise NotFound("Notification not found")
    return notification


def create_notification(
    db: Session,
    data: NotificationCreate,
    push: bool = True,
    sender: PushSender | None = None,
) -> Notification:
    notification = Notification(
        title=data.title,
        message=data.message,
        link=data.link,
        type=data.type.value,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info("Notification %d created: %s", notification.id, notification.title)

    if push:
        # Delivery problems never undo the stored notification
        try:
            send_to_all_devices(db, notification, sender=sender)
        except (FirebaseError, ValueError, OSError) as e:
            logger.error("Push delivery failed for notification %d: %s", notification.id, e)
    return notification


def unread_count(db: Session) -> int:
    query = select(func.count(Notification.id)).where(Notification.is_read.is_(False))
    return db.execute(query).scalar_one()


def mark_as_read(db: Session, notification_id: int) -> Notification:
    notification = get_notification(db, notification_id)
    notification.is_read = True
    db.commit()
    return notification


def mark_all_as_read(db: Session) -> int:
    result = db.execute(
        update(Notification).where(Notification.is_read.is_(False)).values(is_read=True)
    )
    db.commit()
    return result.rowcount or 0


def delete_notification(db: Session, notification_id: int) -> None:
    notification = get_notification(db, notification_id)
    db.delete(notification)
    db.commit()
