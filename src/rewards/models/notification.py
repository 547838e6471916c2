"""Notification records addressed to a role audience."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Uuid

from ..core.database import Base
from ..utils.datetime import utcnow


class NotificationKind(str, enum.Enum):
    QUIZ_VIOLATION = "QUIZ_VIOLATION"
    VOUCHER_EXPIRY = "VOUCHER_EXPIRY"


class Notification(Base):
    """Message for supervisory staff, e.g. an anti-cheat violation."""

    __tablename__ = "notifications"

    notification_id = Column(Integer, primary_key=True, autoincrement=True)
    audience = Column(String, nullable=False, default="Supervisors")
    kind = Column(Enum(NotificationKind, name="notification_kind"), nullable=False)
    message = Column(String, nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"))
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
