"""Endpoints for voucher redemptions."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import ADMIN_ROLES, Redemption, RedemptionStatus, Student, User, UserRole
from ...schemas import RedemptionCreate, RedemptionProcess, RedemptionRead, RedemptionReceipt
from ...services import redemption_service
from ...services.redemption_service import RedemptionRuleViolation
from ..deps import get_current_user, require_roles

router = APIRouter(prefix="/redemptions", tags=["redemptions"])

_student = require_roles(UserRole.STUDENT)
_fulfiller = require_roles(UserRole.STAFF, *ADMIN_ROLES)


def _to_read(redemption: Redemption) -> RedemptionRead:
    read = RedemptionRead.model_validate(redemption)
    return read.model_copy(update={"is_expired": redemption_service.is_expired(redemption)})


@router.post(
    "",
    response_model=RedemptionReceipt,
    status_code=status.HTTP_201_CREATED,
    summary="Redeem points for a voucher",
    responses={
        201: {
            "description": "Redemption created with a verification code",
            "content": {
                "application/json": {
                    "example": {
                        "redemption": {
                            "redemption_id": "88888888-8888-8888-8888-888888888888",
                            "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "voucher_id": "77777777-7777-7777-7777-777777777777",
                            "voucher_name": "Bronze Reward",
                            "point_cost": 500,
                            "aed_value": 50,
                            "code": "K7Q2ZD",
                            "status": "Pending",
                            "created_at": "2025-11-12T14:30:00",
                            "processed_at": None,
                            "processed_by": None,
                            "is_expired": False,
                        },
                        "available_balance": 120,
                    }
                }
            },
        },
        400: {"description": "Insufficient points"},
        404: {"description": "Voucher level not found"},
        409: {"description": "Balance changed concurrently"},
    },
)
def redeem_voucher(
    payload: RedemptionCreate,
    db: Session = Depends(get_db),
    student: Student = Depends(_student),
) -> RedemptionReceipt:
    """Spend points on a voucher level.

    Example request body::

        {
            "voucher_id": "77777777-7777-7777-7777-777777777777"
        }
    """

    try:
        redemption, remaining_balance = redemption_service.redeem(
            db,
            student_id=student.id,
            voucher_id=payload.voucher_id,
        )
        db.commit()
        db.refresh(redemption)
        return RedemptionReceipt(redemption=_to_read(redemption), available_balance=remaining_balance)
    except RedemptionRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("", response_model=List[RedemptionRead], summary="List redemptions")
def list_redemptions(
    redemption_status: Optional[RedemptionStatus] = Query(None, alias="status"),
    student_id: Optional[UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[RedemptionRead]:
    """Students see their own vouchers; staff and administrators see everyone's."""

    if user.role is UserRole.STUDENT:
        student_id = user.id
    elif user.role is not UserRole.STAFF and user.role not in ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    redemptions = redemption_service.list_redemptions(
        db,
        status=redemption_status,
        student_id=student_id,
        limit=limit,
        offset=offset,
    )
    return [_to_read(redemption) for redemption in redemptions]


@router.get(
    "/lookup/{code}",
    response_model=RedemptionRead,
    summary="Find a redemption by verification code",
    responses={404: {"description": "No redemption with this code"}},
)
def lookup_code(code: str, db: Session = Depends(get_db), actor: User = Depends(_fulfiller)) -> RedemptionRead:
    try:
        return _to_read(redemption_service.find_by_code(db, code))
    except RedemptionRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{redemption_id}/process",
    response_model=RedemptionRead,
    summary="Mark a voucher used or rejected",
    responses={
        400: {"description": "Voucher expired"},
        404: {"description": "Redemption not found"},
        409: {"description": "Already processed"},
    },
)
def process_redemption(
    redemption_id: UUID,
    payload: RedemptionProcess,
    db: Session = Depends(get_db),
    actor: User = Depends(_fulfiller),
) -> RedemptionRead:
    try:
        redemption = redemption_service.process_redemption(
            db,
            redemption_id=redemption_id,
            new_status=RedemptionStatus(payload.status),
            processed_by=actor.email,
        )
        db.commit()
        db.refresh(redemption)
    except RedemptionRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return _to_read(redemption)
