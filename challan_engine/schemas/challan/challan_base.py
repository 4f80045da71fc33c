"""
Challan schemas: response, partial update and state transition requests.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from challan_engine.models.base.enums import ChallanStatus, ChallanType
from challan_engine.schemas.common.base import (
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    quantize_money,
)

__all__ = [
    "BILLING_PERIOD_PATTERN",
    "ChallanResponse",
    "ChallanUpdate",
    "ChallanCancelRequest",
    "ChallanPayRequest",
    "BulkMarkPaidRequest",
    "BulkMarkPaidResult",
    "SweepOverdueResult",
    "BulkEditRequest",
    "BulkPayRequest",
    "BulkActionResult",
]

BILLING_PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class ChallanResponse(BaseResponseSchema):
    """Challan as returned to callers."""

    challan_number: str = Field(..., description="Printed challan number, e.g. FEB-2024-000123")
    student_id: UUID
    month: str = Field(..., description="Billing period (YYYY-MM)")

    monthly_fee: Decimal
    admission_fee: Decimal
    exam_fee: Decimal
    other_fees: Decimal
    discount: Decimal
    previous_balance: Decimal = Field(..., description="Unpaid balance carried from earlier periods")
    total_amount: Decimal

    status: ChallanStatus
    due_date: Date
    paid_date: Optional[Date] = None

    is_first_challan: bool
    challan_type: ChallanType
    notes: Optional[str] = None
    generated_by: Optional[UUID] = None

    last_edited_by: Optional[UUID] = None
    last_edited_at: Optional[datetime] = None
    edit_count: int = 0
    version: int = Field(..., description="Concurrency token; send back as expected_version")


class ChallanUpdate(BaseUpdateSchema):
    """
    Correction of a pending challan.

    Only fields that are set are changed; the total is recomputed.
    """

    monthly_fee: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    admission_fee: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    exam_fee: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    other_fees: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    discount: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    month: Optional[str] = Field(default=None, pattern=BILLING_PERIOD_PATTERN)
    due_date: Optional[Date] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    expected_version: Optional[int] = Field(
        default=None,
        ge=1,
        description="Version the operator last saw; stale edits are rejected",
    )

    @field_validator("monthly_fee", "admission_fee", "exam_fee", "other_fees", "discount")
    @classmethod
    def quantize_amounts(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_money(v)


class ChallanCancelRequest(BaseSchema):
    expected_version: Optional[int] = Field(default=None, ge=1)
    reason: Optional[str] = Field(default=None, max_length=500)


class ChallanPayRequest(BaseSchema):
    paid_date: Optional[Date] = Field(default=None, description="Defaults to today")


class BulkMarkPaidRequest(BaseSchema):
    paid_date: Optional[Date] = Field(default=None, description="Defaults to today")


class BulkMarkPaidResult(BaseSchema):
    student_id: UUID
    updated_count: int


class SweepOverdueResult(BaseSchema):
    as_of: Date
    updated_count: int


class BulkEditRequest(BaseSchema):
    """
    Same correction applied to many pending challans.

    Only fields that are set are changed; each total is recomputed.
    """

    challan_ids: List[UUID] = Field(..., min_length=1)
    discount: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    due_date: Optional[Date] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("discount")
    @classmethod
    def quantize_discount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_money(v)


class BulkPayRequest(BaseSchema):
    challan_ids: List[UUID] = Field(..., min_length=1)
    paid_date: Optional[Date] = Field(default=None, description="Defaults to today")


class BulkActionResult(BaseSchema):
    """Per-challan outcome of a bulk action; ``errors`` is bounded."""

    success_count: int = 0
    failure_count: int = 0
    errors: List[str] = Field(default_factory=list)
    errors_truncated: bool = False
