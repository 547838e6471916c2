"""Point history model capturing balance movements."""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class PointEventType(str, enum.Enum):
    """History entry classification."""

    AWARDED = "Awarded"
    REDEEMED = "Redeemed"


class PointHistory(Base):
    """Immutable ledger of point deltas for each student."""

    __tablename__ = "point_history"
    __table_args__ = (
        CheckConstraint(
            "(event_type = 'Awarded' AND amount > 0) OR (event_type = 'Redeemed' AND amount < 0)",
            name="point_history_amount_sign",
        ),
    )

    history_id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    related_redemption = Column(Uuid(as_uuid=True), ForeignKey("redemptions.redemption_id", ondelete="SET NULL"))
    related_submission = Column(
        Uuid(as_uuid=True), ForeignKey("task_submissions.submission_id", ondelete="SET NULL")
    )
    event_type = Column(
        Enum(PointEventType, name="point_event_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    amount = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    student = relationship("Student", back_populates="history")
