"""
Challan generation schemas.

Requests and results for batch runs, previews, opening challans and
individual challans.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from challan_engine.models.base.enums import FeeCategory
from challan_engine.schemas.common.base import BaseCreateSchema, BaseSchema, quantize_money
from challan_engine.schemas.challan.challan_base import BILLING_PERIOD_PATTERN

__all__ = [
    "BatchGenerateRequest",
    "BatchPreviewRequest",
    "BatchResult",
    "PreviewResult",
    "FirstChallanRequest",
    "IndividualChallanRequest",
]


class BatchPreviewRequest(BaseSchema):
    """Cohort and fee selection shared by batch runs and previews."""

    month: str = Field(..., pattern=BILLING_PERIOD_PATTERN, description="Billing period (YYYY-MM)")
    class_ids: Optional[List[UUID]] = Field(
        default=None,
        description="Restrict the cohort to these classes; all active students when omitted",
    )
    categories: List[FeeCategory] = Field(
        ...,
        min_length=1,
        description="Fee categories to bill; EXAM and OTHER bill all their sub-categories",
    )
    carry_forward: bool = Field(
        default=False,
        description="Fold unpaid balances of earlier periods into the total",
    )


class BatchGenerateRequest(BatchPreviewRequest):
    due_date: Optional[Date] = Field(default=None, description="Defaults to today plus the configured due days")
    notes: Optional[str] = Field(default=None, max_length=1000)


class BatchResult(BaseSchema):
    """
    Outcome of a batch run.

    Counts are exact; ``errors`` is bounded and ``errors_truncated`` tells
    whether messages were dropped.
    """

    month: str
    success_count: int = 0
    failure_count: int = 0
    errors: List[str] = Field(default_factory=list)
    errors_truncated: bool = False


class PreviewResult(BaseSchema):
    """
    Estimated outcome of a batch run.

    Amounts are extrapolated from a small sample of the cohort and are an
    estimate, not a forecast.
    """

    estimated_total_students: int
    estimated_total_amount: Decimal
    estimated_average: Decimal
    estimated_students_with_carried_balance: int
    sample_size: int
    sample_students_with_carried_balance: int
    sample_fee_totals: Dict[str, Decimal] = Field(default_factory=dict)
    is_estimate: bool = True


class FirstChallanRequest(BaseCreateSchema):
    student_id: UUID
    class_id: UUID
    admission_fee: Decimal = Field(..., ge=Decimal("0"))
    discount: Decimal = Field(default=Decimal("0.00"), ge=Decimal("0"))
    period: Optional[str] = Field(
        default=None,
        pattern=BILLING_PERIOD_PATTERN,
        description="Defaults to the current month",
    )

    @field_validator("admission_fee", "discount")
    @classmethod
    def quantize_amounts(cls, v: Decimal) -> Decimal:
        return quantize_money(v)


class IndividualChallanRequest(BaseCreateSchema):
    student_id: UUID
    month: str = Field(..., pattern=BILLING_PERIOD_PATTERN)
    categories: List[FeeCategory] = Field(
        default_factory=lambda: [FeeCategory.TUITION],
        description="Tuition is always billed",
    )
    amount_overrides: Dict[FeeCategory, Decimal] = Field(
        default_factory=dict,
        description="Operator entered amounts per billable sub-category",
    )
    discount_override: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    carry_forward: bool = False
    due_date: Optional[Date] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("amount_overrides")
    @classmethod
    def validate_overrides(cls, v: Dict[FeeCategory, Decimal]) -> Dict[FeeCategory, Decimal]:
        for category, amount in v.items():
            if amount < 0:
                raise ValueError(f"Override for {category.value} cannot be negative")
        return {category: quantize_money(amount) for category, amount in v.items()}

    @field_validator("discount_override")
    @classmethod
    def quantize_discount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_money(v)
