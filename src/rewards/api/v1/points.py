"""Point adjustments, history and reconciliation."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...models import ADMIN_ROLES, SUPERVISORY_ROLES, User, UserRole
from ...schemas import PointAdjustment, PointHistoryRead, PointsResetResult, ReconciliationRead
from ...services import ledger_service
from ..deps import get_current_user, require_roles

router = APIRouter(prefix="/points", tags=["points"])

_admin = require_roles(*ADMIN_ROLES)


@router.post(
    "/adjustments",
    response_model=PointHistoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Manually adjust a balance",
    responses={
        201: {
            "description": "Adjustment recorded",
            "content": {
                "application/json": {
                    "example": {
                        "history_id": 42,
                        "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                        "amount": -50,
                        "reason": "Duplicate award corrected",
                        "event_type": "Redeemed",
                        "related_redemption": None,
                        "related_submission": None,
                        "created_at": "2025-11-12T14:30:00",
                    }
                }
            },
        },
        400: {"description": "Adjustment would make the balance negative"},
        422: {"description": "Zero adjustment"},
    },
)
def adjust_points(payload: PointAdjustment, db: Session = Depends(get_db), actor: User = Depends(_admin)):
    try:
        entry = ledger_service.adjust_manual(
            db,
            student_id=payload.student_id,
            delta=payload.delta,
            reason=payload.reason,
            actor=actor.email,
        )
        db.commit()
        db.refresh(entry)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return entry


@router.get("/history", response_model=List[PointHistoryRead], summary="Point history")
def read_history(
    student_id: Optional[UUID] = Query(None, description="Defaults to the caller when a student"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Newest entries first. Students may only read their own history."""

    if user.role is UserRole.STUDENT:
        if student_id not in (None, user.id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        student_id = user.id
    elif user.role not in SUPERVISORY_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    elif student_id is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="student_id is required")
    try:
        return ledger_service.list_history(db, student_id=student_id, limit=limit, offset=offset)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/reconcile/{student_id}", response_model=ReconciliationRead, summary="Check a balance against history")
def reconcile(student_id: UUID, db: Session = Depends(get_db), actor: User = Depends(_admin)):
    try:
        return ReconciliationRead(**ledger_service.reconcile(db, student_id=student_id))
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post("/reset", response_model=PointsResetResult, summary="Zero every student balance")
def reset_points(db: Session = Depends(get_db), actor: User = Depends(_admin)) -> PointsResetResult:
    """Start a new season. Each reset balance gets a matching history entry."""

    try:
        count = ledger_service.reset_all_points(db, actor=actor.email)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return PointsResetResult(students_reset=count)
