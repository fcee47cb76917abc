from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from dashboard.core.dependencies import RequireApiKey
from dashboard.db.session import get_db
from dashboard.models.notification import Notification
from dashboard.schemas.notification import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationResponse,
    UnreadCountResponse,
)
from dashboard.schemas.pagination import PaginationParams, PaginatedResponse
from dashboard.services import notifications

router = APIRouter(prefix="/api/notifications", tags=["notifications"], dependencies=[RequireApiKey])


@router.get("", response_model=PaginatedResponse[NotificationResponse])
def list_notifications(
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(),
    unread_only: bool = Query(False, description="Only unread notifications"),
):
    query = select(Notification)
    count_query = select(func.count(Notification.id))

    if unread_only:
        query = query.where(Notification.is_read.is_(False))
        count_query = count_query.where(Notification.is_read.is_(False))

    total = db.execute(count_query).scalar_one()

    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    query = query.offset(pagination.offset).limit(pagination.limit)
    items = db.execute(query).scalars().all()

    return PaginatedResponse.build(items, total, pagination)


@router.get("/unread_count", response_model=UnreadCountResponse)
def unread_count(db: Session = Depends(get_db)):
    return UnreadCountResponse(count=notifications.unread_count(db))


@router.post("", response_model=NotificationResponse, status_code=201)
def create_notification(body: NotificationCreate, db: Session = Depends(get_db)):
    return notifications.create_notification(db, body)


@router.patch("/read_all", response_model=MarkAllReadResponse)
def mark_all_as_read(db: Session = Depends(get_db)):
    return MarkAllReadResponse(updated=notifications.mark_all_as_read(db))


@router.patch("/{notification_id}/read", status_code=204)
def mark_as_read(notification_id: int, db: Session = Depends(get_db)):
    notifications.mark_as_read(db, notification_id)


@router.delete("/{notification_id}", status_code=204)
def delete_notification(notification_id: int, db: Session = Depends(get_db)):
    notifications.delete_notification(db, notification_id)
