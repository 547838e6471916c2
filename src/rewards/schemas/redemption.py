"""Pydantic schemas for redemption workflows."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models import RedemptionStatus


class RedemptionCreate(BaseModel):
    """Incoming payload for redeeming a voucher."""

    voucher_id: UUID


class RedemptionRead(BaseModel):
    """Represents a redemption record."""

    model_config = ConfigDict(from_attributes=True)

    redemption_id: UUID
    student_id: UUID
    voucher_id: Optional[UUID]
    voucher_name: str
    point_cost: int
    aed_value: int
    code: str
    status: RedemptionStatus
    created_at: datetime
    processed_at: Optional[datetime]
    processed_by: Optional[str]
    is_expired: bool = False


class RedemptionReceipt(BaseModel):
    """Response returned after processing a redemption."""

    redemption: RedemptionRead
    available_balance: int = Field(..., description="Balance after this redemption.")


class RedemptionProcess(BaseModel):
    status: Literal["Used", "Rejected"]
