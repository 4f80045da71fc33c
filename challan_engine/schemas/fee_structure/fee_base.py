"""
Fee structure schemas.

Fee structures are versioned: creating one appends a new version for
its (class, category) instead of editing the current one.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from challan_engine.models.base.enums import FeeCategory, FeeFrequency
from challan_engine.schemas.common.base import BaseCreateSchema, BaseResponseSchema

__all__ = [
    "FeeStructureCreate",
    "FeeStructureResponse",
]


class FeeStructureCreate(BaseCreateSchema):
    """New version of a class fee."""

    class_id: UUID = Field(..., description="Class the fee applies to")
    category: FeeCategory = Field(..., description="Fee category")
    frequency: FeeFrequency = Field(default=FeeFrequency.MONTHLY, description="Billing frequency")
    amount: Decimal = Field(
        ...,
        ge=Decimal("0"),
        description="Amount per billing period (precision: 10 digits, 2 decimal places)",
    )
    effective_from: Date = Field(..., description="First day this version applies")
    description: Optional[str] = Field(default=None, max_length=255)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Quantize to 2 decimal places."""
        return v.quantize(Decimal("0.01"))


class FeeStructureResponse(BaseResponseSchema):
    class_id: UUID
    category: FeeCategory
    frequency: FeeFrequency
    amount: Decimal
    effective_from: Date
    version: int
    description: Optional[str] = None
    created_by: Optional[UUID] = None
