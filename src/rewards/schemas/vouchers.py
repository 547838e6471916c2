"""Voucher catalogue schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VoucherCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    point_cost: int = Field(..., gt=0)
    aed_value: int = Field(..., ge=0)
    description: str = ""


class VoucherUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    point_cost: Optional[int] = Field(None, gt=0)
    aed_value: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class VoucherRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    voucher_id: UUID
    name: str
    point_cost: int
    aed_value: int
    description: str
