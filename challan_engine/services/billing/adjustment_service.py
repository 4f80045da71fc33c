"""
Discount and carry-forward calculation.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from challan_engine.services.base import BaseService
from challan_engine.repositories.challan import ChallanRepository
from challan_engine.models.challan.challan import compute_total_amount
from challan_engine.models.student.student import Student
from challan_engine.core.validators import ZERO, validate_amount, validate_billing_period


@dataclass(frozen=True)
class Adjustment:
    discount: Decimal
    carried_balance: Decimal
    total: Decimal

    @property
    def has_carried_balance(self) -> bool:
        return self.carried_balance > ZERO


class AdjustmentService(BaseService):
    """
    Applies a student's standing discount and folds forward unpaid
    balances from earlier periods.

    The carried balance is a point-in-time sum recomputed on every call,
    not a running ledger.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.challans = ChallanRepository(db_session)

    def carried_balance(self, student: Student, period: str) -> Decimal:
        """Unpaid total of the student's challans for periods before ``period``."""
        validate_billing_period(period)
        return self.challans.sum_unpaid_before(student.id, period)

    def adjust(
        self,
        subtotal: Decimal,
        student: Student,
        period: str,
        carry_forward: bool,
        discount_override: Optional[Decimal] = None,
    ) -> Adjustment:
        """
        Compute (discount, carried balance, total).

        Raises:
            ValidationError: negative discount or malformed period
        """
        validate_billing_period(period)
        if discount_override is not None:
            discount = validate_amount(discount_override, "discount")
        else:
            discount = validate_amount(student.fee_discount, "fee_discount")

        carried = self.carried_balance(student, period) if carry_forward else ZERO

        total = compute_total_amount(
            monthly_fee=subtotal,
            admission_fee=ZERO,
            exam_fee=ZERO,
            other_fees=ZERO,
            discount=discount,
            previous_balance=carried,
        )
        return Adjustment(discount=discount, carried_balance=carried, total=total)
