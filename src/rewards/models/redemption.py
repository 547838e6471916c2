"""Redemption domain model."""

import enum
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class RedemptionStatus(str, enum.Enum):
    """Possible redemption states. ``PENDING`` is initial, the others terminal."""

    PENDING = "Pending"
    USED = "Used"
    REJECTED = "Rejected"


class Redemption(Base):
    """Voucher claim awaiting fulfilment by staff."""

    __tablename__ = "redemptions"
    __table_args__ = (
        CheckConstraint("point_cost > 0", name="redemptions_cost_positive"),
    )

    redemption_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    voucher_id = Column(Uuid(as_uuid=True), ForeignKey("voucher_levels.voucher_id", ondelete="SET NULL"))
    voucher_name = Column(String, nullable=False)
    point_cost = Column(Integer, nullable=False)
    aed_value = Column(Integer, nullable=False)
    code = Column(String(6), nullable=False, unique=True, index=True)
    status = Column(
        SAEnum(RedemptionStatus, name="redemption_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RedemptionStatus.PENDING,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    processed_at = Column(DateTime)
    processed_by = Column(String)

    student = relationship("Student", back_populates="redemptions")
    voucher = relationship("VoucherLevel")
