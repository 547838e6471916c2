"""Voucher level catalogue."""

from __future__ import annotations

import logging
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import RuleViolation
from ..models import VoucherLevel

logger = logging.getLogger(__name__)

DEFAULT_LEVELS = (
    ("Bronze Reward", 500, 50, "Basic retail voucher"),
    ("Silver Reward", 900, 100, "Premium dining voucher"),
    ("Gold Reward", 2000, 250, "Luxury hotel/spa voucher"),
    ("Platinum Reward", 3500, 500, "Ultimate experience voucher"),
)


class CatalogRuleViolation(RuleViolation):
    """Raised when a catalogue change is refused."""


def list_levels(session: Session) -> Sequence[VoucherLevel]:
    return session.execute(select(VoucherLevel).order_by(VoucherLevel.point_cost.asc())).scalars().all()


def _ensure_level(session: Session, voucher_id: UUID) -> VoucherLevel:
    level = session.get(VoucherLevel, voucher_id)
    if level is None:
        raise CatalogRuleViolation(f"Voucher level {voucher_id} not found", status_code=404)
    return level


def _ensure_unique_name(session: Session, name: str, *, exclude: Optional[UUID] = None) -> None:
    stmt = select(VoucherLevel.voucher_id).where(VoucherLevel.name == name)
    if exclude is not None:
        stmt = stmt.where(VoucherLevel.voucher_id != exclude)
    if session.execute(stmt).first() is not None:
        raise CatalogRuleViolation(f"A voucher level named {name!r} already exists.", status_code=409)


def create_level(
    session: Session,
    *,
    name: str,
    point_cost: int,
    aed_value: int,
    description: str = "",
) -> VoucherLevel:
    _ensure_unique_name(session, name)
    level = VoucherLevel(name=name, point_cost=point_cost, aed_value=aed_value, description=description)
    session.add(level)
    session.flush()
    return level


def update_level(session: Session, *, voucher_id: UUID, changes: dict) -> VoucherLevel:
    level = _ensure_level(session, voucher_id)
    if "name" in changes and changes["name"] is not None:
        _ensure_unique_name(session, changes["name"], exclude=voucher_id)
    for field in ("name", "point_cost", "aed_value", "description"):
        if changes.get(field) is not None:
            setattr(level, field, changes[field])
    session.flush()
    return level


def delete_level(session: Session, *, voucher_id: UUID) -> None:
    session.delete(_ensure_level(session, voucher_id))
    session.flush()


def seed_default_levels(session: Session) -> int:
    """Insert the default tiers when the catalogue is empty; returns rows created."""

    if session.execute(select(VoucherLevel.voucher_id).limit(1)).first() is not None:
        return 0
    for name, cost, value, description in DEFAULT_LEVELS:
        session.add(VoucherLevel(name=name, point_cost=cost, aed_value=value, description=description))
    session.flush()
    logger.info("seeded %s voucher levels", len(DEFAULT_LEVELS))
    return len(DEFAULT_LEVELS)
