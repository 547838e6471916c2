"""Domain logic for voucher redemptions."""

from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.config import get_settings
from ..core.errors import RuleViolation
from ..models import NotificationKind, Redemption, RedemptionStatus, VoucherLevel
from ..utils.datetime import is_older_than, utcnow
from . import ledger_service, notification_service

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6
TERMINAL_STATUSES = (RedemptionStatus.USED, RedemptionStatus.REJECTED)


class RedemptionRuleViolation(RuleViolation):
    """Raised when redemption rules are violated."""


class RedemptionExpired(RedemptionRuleViolation):
    """Raised when a pending voucher is too old to be used."""


def generate_code(session: Session, *, attempts: int = 10) -> str:
    """Return an unused 6-character uppercase alphanumeric code."""

    for _ in range(attempts):
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        taken = session.execute(select(Redemption.redemption_id).where(Redemption.code == code)).first()
        if taken is None:
            return code
    raise RedemptionRuleViolation("Could not allocate a redemption code, please retry.", status_code=503)


def _ensure_voucher(session: Session, voucher_id: UUID) -> VoucherLevel:
    voucher = session.get(VoucherLevel, voucher_id)
    if voucher is None:
        raise RedemptionRuleViolation(f"Voucher level {voucher_id} not found", status_code=404)
    return voucher


def is_expired(redemption: Redemption, now: Optional[datetime] = None) -> bool:
    """A pending redemption expires once it is older than the configured window."""

    return redemption.status is RedemptionStatus.PENDING and is_older_than(
        redemption.created_at, get_settings().redemption_expiry_days, now
    )


def redeem(
    session: Session,
    *,
    student_id: UUID,
    voucher_id: UUID,
) -> tuple[Redemption, int]:
    """Spend points on a voucher and return the pending record with the new balance.

    The balance decrement, history entry and redemption row are written in
    one transaction. The student row is locked for update and carries a
    version counter, so a concurrent redemption from the same account either
    waits and sees the reduced balance or fails with a conflict.
    """

    voucher = _ensure_voucher(session, voucher_id)
    try:
        student = ledger_service.ensure_student(session, student_id, for_update=True)
    except ledger_service.LedgerRuleViolation as exc:
        raise RedemptionRuleViolation(exc.detail, status_code=exc.status_code) from exc

    balance = student.points or 0
    if voucher.point_cost > balance:
        logger.warning(
            "redemption refused for student %s: cost %s exceeds balance %s",
            student.id,
            voucher.point_cost,
            balance,
        )
        raise RedemptionRuleViolation(
            f"Insufficient points: {voucher.name} costs {voucher.point_cost}, balance is {balance}."
        )

    redemption = Redemption(
        student_id=student.id,
        voucher_id=voucher.voucher_id,
        voucher_name=voucher.name,
        point_cost=voucher.point_cost,
        aed_value=voucher.aed_value,
        code=generate_code(session),
        status=RedemptionStatus.PENDING,
        created_at=utcnow(),
    )
    session.add(redemption)
    try:
        session.flush()  # Assign redemption_id before writing history
        ledger_service.record_delta(
            session,
            student,
            -voucher.point_cost,
            f"Redeemed {voucher.name}",
            related_redemption=redemption.redemption_id,
        )
        session.flush()
    except StaleDataError as exc:
        raise RedemptionRuleViolation(
            "Balance changed during redemption, please retry.", status_code=409
        ) from exc

    logger.info("student %s redeemed %s with code %s", student.id, voucher.name, redemption.code)
    return redemption, student.points


def _ensure_redemption(session: Session, redemption_id: UUID) -> Redemption:
    stmt = (
        select(Redemption)
        .where(Redemption.redemption_id == redemption_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    redemption = session.execute(stmt).scalar_one_or_none()
    if redemption is None:
        raise RedemptionRuleViolation(f"Redemption {redemption_id} not found", status_code=404)
    return redemption


def process_redemption(
    session: Session,
    *,
    redemption_id: UUID,
    new_status: RedemptionStatus,
    processed_by: str,
    now: Optional[datetime] = None,
) -> Redemption:
    """Move a pending redemption to Used or Rejected."""

    if new_status not in TERMINAL_STATUSES:
        raise RedemptionRuleViolation("Redemptions can only be marked Used or Rejected.", status_code=422)

    redemption = _ensure_redemption(session, redemption_id)
    if redemption.status is not RedemptionStatus.PENDING:
        raise RedemptionRuleViolation("This voucher has already been processed.", status_code=409)

    if new_status is RedemptionStatus.USED and is_expired(redemption, now):
        logger.warning("refused expired redemption %s (code %s)", redemption.redemption_id, redemption.code)
        raise RedemptionExpired(
            f"This voucher has expired (older than {get_settings().redemption_expiry_days} days). "
            "It cannot be redeemed."
        )

    redemption.status = new_status
    redemption.processed_at = utcnow()
    redemption.processed_by = processed_by
    session.flush()
    logger.info("redemption %s marked %s by %s", redemption.code, new_status.value, processed_by)
    return redemption


def find_by_code(session: Session, code: str) -> Redemption:
    """Look a redemption up by its verification code."""

    normalised = (code or "").strip().upper()
    if not normalised:
        raise RedemptionRuleViolation("A redemption code is required.", status_code=422)
    redemption = session.execute(select(Redemption).where(Redemption.code == normalised)).scalar_one_or_none()
    if redemption is None:
        raise RedemptionRuleViolation(f"No redemption found for code: {normalised}", status_code=404)
    return redemption


def list_redemptions(
    session: Session,
    *,
    status: Optional[RedemptionStatus] = None,
    student_id: Optional[UUID] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Redemption]:
    stmt = select(Redemption).order_by(Redemption.created_at.desc()).offset(offset).limit(limit)
    if status is not None:
        stmt = stmt.where(Redemption.status == status)
    if student_id is not None:
        stmt = stmt.where(Redemption.student_id == student_id)
    return session.execute(stmt).scalars().all()


def count_expired_pending(session: Session, *, now: Optional[datetime] = None) -> int:
    pending = session.execute(
        select(Redemption).where(Redemption.status == RedemptionStatus.PENDING)
    ).scalars().all()
    return sum(1 for redemption in pending if is_expired(redemption, now))


def post_expiry_digest(session: Session, *, now: Optional[datetime] = None) -> int:
    """Tell staff how many pending vouchers have expired; returns that count."""

    expired = count_expired_pending(session, now=now)
    if expired:
        notification_service.notify(
            session,
            audience=notification_service.STAFF,
            kind=NotificationKind.VOUCHER_EXPIRY,
            message=(
                f"{expired} pending voucher(s) are older than {get_settings().redemption_expiry_days} days "
                "and can no longer be redeemed."
            ),
        )
    return expired
