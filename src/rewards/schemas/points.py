"""Pydantic schemas for point history and adjustments."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models import PointEventType


class PointAdjustment(BaseModel):
    student_id: UUID
    delta: int = Field(..., description="Signed change; must not be zero.")
    reason: str = Field(..., min_length=1, max_length=280)


class PointHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    history_id: int
    student_id: UUID
    amount: int
    reason: str
    event_type: PointEventType
    related_redemption: Optional[UUID]
    related_submission: Optional[UUID]
    created_at: datetime


class ReconciliationRead(BaseModel):
    balance: int
    initial_points: int
    history_total: int
    drift: int = Field(..., description="Zero when balance matches initial points plus history.")


class PointsResetResult(BaseModel):
    students_reset: int
