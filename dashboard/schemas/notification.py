from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from dashboard.models.notification import NotificationType


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    link: Optional[str] = Field(None, max_length=500)
    type: NotificationType = NotificationType.info


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    link: Optional[str] = None
    type: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class DeviceTokenRegister(BaseModel):
    token: str = Field(..., min_length=10, max_length=500)
