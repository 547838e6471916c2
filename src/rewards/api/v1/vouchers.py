"""Voucher catalogue endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import ADMIN_ROLES, User
from ...schemas import VoucherCreate, VoucherRead, VoucherUpdate
from ...services import catalog_service
from ...services.catalog_service import CatalogRuleViolation
from ..deps import get_current_user, require_roles

router = APIRouter(prefix="/vouchers", tags=["vouchers"])

_admin = require_roles(*ADMIN_ROLES)


@router.get("", response_model=List[VoucherRead], summary="Voucher levels, cheapest first")
def list_vouchers(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return catalog_service.list_levels(db)


@router.post("", response_model=VoucherRead, status_code=status.HTTP_201_CREATED, summary="Add a voucher level")
def create_voucher(payload: VoucherCreate, db: Session = Depends(get_db), actor: User = Depends(_admin)):
    try:
        level = catalog_service.create_level(db, **payload.model_dump())
        db.commit()
        db.refresh(level)
    except CatalogRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return level


@router.patch("/{voucher_id}", response_model=VoucherRead, summary="Edit a voucher level")
def update_voucher(
    voucher_id: UUID,
    payload: VoucherUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(_admin),
):
    """Existing redemptions keep the name, cost and value they were created with."""

    try:
        level = catalog_service.update_level(db, voucher_id=voucher_id, changes=payload.model_dump(exclude_unset=True))
        db.commit()
        db.refresh(level)
    except CatalogRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return level


@router.delete("/{voucher_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a voucher level")
def delete_voucher(voucher_id: UUID, db: Session = Depends(get_db), actor: User = Depends(_admin)) -> Response:
    try:
        catalog_service.delete_level(db, voucher_id=voucher_id)
        db.commit()
    except CatalogRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/seed", response_model=List[VoucherRead], summary="Install the default voucher levels")
def seed_vouchers(db: Session = Depends(get_db), actor: User = Depends(_admin)):
    """Bronze, Silver, Gold and Platinum tiers; no-op when any level already exists."""

    catalog_service.seed_default_levels(db)
    db.commit()
    return catalog_service.list_levels(db)
