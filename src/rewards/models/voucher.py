"""Voucher catalogue model."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Uuid

from ..core.database import Base
from ..utils.datetime import utcnow


class VoucherLevel(Base):
    """Reward tier that students can buy with points."""

    __tablename__ = "voucher_levels"
    __table_args__ = (
        CheckConstraint("point_cost > 0", name="voucher_levels_cost_positive"),
        CheckConstraint("aed_value >= 0", name="voucher_levels_value_non_negative"),
    )

    voucher_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True)
    point_cost = Column(Integer, nullable=False)
    aed_value = Column(Integer, nullable=False)
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow, nullable=False)
