"""Notification schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from ..models import NotificationKind


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_id: int
    audience: str
    kind: NotificationKind
    message: str
    student_id: Optional[UUID]
    is_read: bool
    created_at: datetime
