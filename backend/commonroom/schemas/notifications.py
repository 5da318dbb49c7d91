"""Notification Schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from commonroom.core.domain_types import NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    related_id: str | None = None
    read: bool
    created_at: datetime | None = None
    read_at: datetime | None = None
