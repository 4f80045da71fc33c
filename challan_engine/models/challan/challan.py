"""
Challan Model

The billable document issued to one student for one billing period.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from challan_engine.models.base.base_model import BaseModel
from challan_engine.models.base.enums import ChallanStatus, ChallanType, enum_values
from challan_engine.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from challan_engine.models.student.student import Student


ZERO = Decimal("0.00")

# pending -> paid | overdue | cancelled ; overdue -> paid ; paid/cancelled terminal
ALLOWED_TRANSITIONS: Dict[ChallanStatus, FrozenSet[ChallanStatus]] = {
    ChallanStatus.PENDING: frozenset({
        ChallanStatus.PAID,
        ChallanStatus.OVERDUE,
        ChallanStatus.CANCELLED,
    }),
    ChallanStatus.OVERDUE: frozenset({ChallanStatus.PAID}),
    ChallanStatus.PAID: frozenset(),
    ChallanStatus.CANCELLED: frozenset(),
}

UNPAID_STATUSES = (ChallanStatus.PENDING, ChallanStatus.OVERDUE)

_LIVE_CHALLAN_PREDICATE = text("status <> 'cancelled'")


def compute_total_amount(
    monthly_fee: Decimal,
    admission_fee: Decimal,
    exam_fee: Decimal,
    other_fees: Decimal,
    discount: Decimal,
    previous_balance: Decimal = ZERO,
) -> Decimal:
    """Total owed on a challan; never negative."""
    subtotal = monthly_fee + admission_fee + exam_fee + other_fees
    return max(ZERO, subtotal - discount + previous_balance)


class Challan(BaseModel, TimestampMixin):
    """
    Fee challan.

    Invariants:
        - at most one non-cancelled challan per (student_id, month),
          enforced by a partial unique index
        - total_amount = max(0, fees - discount + previous_balance)
        - amounts, month and due date change only while pending
    """

    __tablename__ = "fee_challans"

    challan_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Billing period key, YYYY-MM
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)

    # Fee breakdown
    monthly_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=ZERO)
    admission_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=ZERO)
    exam_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=ZERO)
    other_fees: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=ZERO)
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=ZERO)
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=ZERO)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=ZERO)

    status: Mapped[ChallanStatus] = mapped_column(
        Enum(
            ChallanStatus,
            name="challan_status_enum",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=ChallanStatus.PENDING,
        index=True,
    )
    due_date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)
    paid_date: Mapped[Optional[Date]] = mapped_column(SQLDate, nullable=True)

    is_first_challan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    challan_type: Mapped[ChallanType] = mapped_column(
        Enum(
            ChallanType,
            name="challan_type_enum",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=ChallanType.REGULAR,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    generated_by: Mapped[Optional[UUID]] = mapped_column(nullable=True, index=True)

    # Edit bookkeeping
    last_edited_by: Mapped[Optional[UUID]] = mapped_column(nullable=True)
    last_edited_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    edit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Optimistic concurrency token
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    student: Mapped["Student"] = relationship(
        "Student",
        back_populates="challans",
        lazy="select",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index(
            "uq_challan_student_month_live",
            "student_id", "month",
            unique=True,
            postgresql_where=_LIVE_CHALLAN_PREDICATE,
            sqlite_where=_LIVE_CHALLAN_PREDICATE,
        ),
        Index("ix_challan_student_status", "student_id", "status"),
        CheckConstraint(
            "monthly_fee >= 0 AND admission_fee >= 0 AND exam_fee >= 0 "
            "AND other_fees >= 0 AND discount >= 0 AND previous_balance >= 0",
            name="ck_challan_amounts_positive",
        ),
        CheckConstraint("total_amount >= 0", name="ck_challan_total_positive"),
    )

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def is_editable(self) -> bool:
        return self.status == ChallanStatus.PENDING

    @property
    def is_unpaid(self) -> bool:
        return self.status in UNPAID_STATUSES

    def can_transition_to(self, new_status: ChallanStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def recalculate_total(self) -> Decimal:
        self.total_amount = compute_total_amount(
            self.monthly_fee,
            self.admission_fee,
            self.exam_fee,
            self.other_fees,
            self.discount,
            self.previous_balance,
        )
        return self.total_amount

    def __repr__(self) -> str:
        return (
            f"<Challan(number={self.challan_number}, student_id={self.student_id}, "
            f"month={self.month}, status={self.status})>"
        )
