"""Staff-facing notifications."""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import RuleViolation
from ..models import ADMIN_ROLES, SUPERVISORY_ROLES, Notification, NotificationKind, UserRole

SUPERVISORS = "Supervisors"
STAFF = "Staff"


class NotificationRuleViolation(RuleViolation):
    """Raised when a notification cannot be accessed."""


def audiences_for(role: UserRole) -> tuple[str, ...]:
    if role in ADMIN_ROLES:
        return (SUPERVISORS, STAFF)
    if role in SUPERVISORY_ROLES:
        return (SUPERVISORS,)
    if role is UserRole.STAFF:
        return (STAFF,)
    return ()


def notify(
    session: Session,
    *,
    audience: str,
    kind: NotificationKind,
    message: str,
    student_id: Optional[UUID] = None,
) -> Notification:
    notification = Notification(audience=audience, kind=kind, message=message, student_id=student_id)
    session.add(notification)
    session.flush()
    return notification


def list_for_role(
    session: Session,
    *,
    role: UserRole,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Notification]:
    audiences = audiences_for(role)
    if not audiences:
        return []
    stmt = (
        select(Notification)
        .where(Notification.audience.in_(audiences))
        .order_by(Notification.created_at.desc(), Notification.notification_id.desc())
        .offset(offset)
        .limit(limit)
    )
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    return session.execute(stmt).scalars().all()


def mark_read(session: Session, *, notification_id: int, role: UserRole) -> Notification:
    notification = session.get(Notification, notification_id)
    if notification is None or notification.audience not in audiences_for(role):
        raise NotificationRuleViolation(f"Notification {notification_id} not found", status_code=404)
    notification.is_read = True
    session.flush()
    return notification
