"""Staff notification inbox."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import User
from ...schemas import NotificationRead
from ...services import notification_service
from ...services.notification_service import NotificationRuleViolation
from ..deps import get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRead], summary="Notifications for my role")
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return notification_service.list_for_role(
        db, role=user.role, unread_only=unread_only, limit=limit, offset=offset
    )


@router.post("/{notification_id}/read", response_model=NotificationRead, summary="Mark a notification read")
def mark_read(notification_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        notification = notification_service.mark_read(db, notification_id=notification_id, role=user.role)
        db.commit()
        db.refresh(notification)
    except NotificationRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return notification
