"""
Fee Resolver Service

Determines what a student owes per fee category for one billing round.

Rules:
- Tuition: the custom override when the student uses custom fees and one
  is set, otherwise the admission snapshot. The snapshot is authoritative
  once it exists.
- Admission: the raw snapshot value; category selection decides whether
  it is billed.
- Exam: split into mid and final halves, mid rounded down to whole units,
  final taking the remainder.
- Other: the pool is split 30/40/30 into sports, science lab and computer
  lab; sports and science lab round down, computer lab takes the remainder.
"""

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal, ROUND_FLOOR
from typing import Dict, FrozenSet, Iterable, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from challan_engine.services.base import BaseService, ServiceResult
from challan_engine.repositories.student import StudentRepository
from challan_engine.repositories.fee_structure import FeeStructureRepository
from challan_engine.models.student.student import Student
from challan_engine.models.base.enums import FeeCategory
from challan_engine.core.exceptions import ValidationError
from challan_engine.core.validators import ZERO, validate_amount


SPORTS_SHARE = Decimal("0.30")
SCIENCE_LAB_SHARE = Decimal("0.40")
WHOLE_UNIT = Decimal("1")

EXAM_CATEGORIES = frozenset({FeeCategory.MID_EXAM, FeeCategory.FINAL_EXAM})
OTHER_CATEGORIES = frozenset({
    FeeCategory.SPORTS,
    FeeCategory.SCIENCE_LAB,
    FeeCategory.COMPUTER_LAB,
})

# Pool categories expand to the sub-categories they are billed as
_POOL_EXPANSION: Dict[FeeCategory, FrozenSet[FeeCategory]] = {
    FeeCategory.EXAM: EXAM_CATEGORIES,
    FeeCategory.OTHER: OTHER_CATEGORIES,
}

BILLABLE_CATEGORIES = frozenset({
    FeeCategory.TUITION,
    FeeCategory.ADMISSION,
}) | EXAM_CATEGORIES | OTHER_CATEGORIES


def _floor_units(amount: Decimal) -> Decimal:
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_FLOOR).quantize(ZERO)


def split_exam_fee(exam_fee: Decimal) -> Tuple[Decimal, Decimal]:
    """Return (mid, final); mid + final == exam_fee."""
    mid = _floor_units(exam_fee / 2)
    return mid, exam_fee - mid


def split_other_fee(pool: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
    """Return (sports, science_lab, computer_lab); the three sum to ``pool``."""
    sports = _floor_units(pool * SPORTS_SHARE)
    science_lab = _floor_units(pool * SCIENCE_LAB_SHARE)
    return sports, science_lab, pool - sports - science_lab


def expand_categories(selected: Iterable[FeeCategory]) -> FrozenSet[FeeCategory]:
    """
    Expand a selection into billable sub-categories.

    Raises:
        ValidationError: for values outside the fee category enum
    """
    expanded = set()
    for raw in selected:
        try:
            category = FeeCategory(raw)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown fee category '{raw}'",
                field_errors={"categories": [f"'{raw}' is not a fee category"]},
            ) from exc
        expanded |= _POOL_EXPANSION.get(category, {category})
    return frozenset(expanded)


@dataclass(frozen=True)
class FeeBreakdown:
    """Fixed-shape amount record: one field per billable category."""

    tuition: Decimal = ZERO
    admission: Decimal = ZERO
    mid_exam: Decimal = ZERO
    final_exam: Decimal = ZERO
    sports: Decimal = ZERO
    science_lab: Decimal = ZERO
    computer_lab: Decimal = ZERO

    # Challan columns
    @property
    def monthly_fee(self) -> Decimal:
        return self.tuition

    @property
    def admission_fee(self) -> Decimal:
        return self.admission

    @property
    def exam_fee(self) -> Decimal:
        return self.mid_exam + self.final_exam

    @property
    def other_fees(self) -> Decimal:
        return self.sports + self.science_lab + self.computer_lab

    @property
    def subtotal(self) -> Decimal:
        return self.monthly_fee + self.admission_fee + self.exam_fee + self.other_fees

    def as_dict(self) -> Dict[FeeCategory, Decimal]:
        return {FeeCategory(f.name): getattr(self, f.name) for f in fields(self)}

    def restricted_to(self, categories: Iterable[FeeCategory]) -> "FeeBreakdown":
        """Copy with every category outside ``categories`` zeroed."""
        keep = set(categories)
        return FeeBreakdown(**{
            f.name: getattr(self, f.name) if FeeCategory(f.name) in keep else ZERO
            for f in fields(self)
        })

    def with_overrides(self, overrides: Dict[FeeCategory, Decimal]) -> "FeeBreakdown":
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for category, amount in overrides.items():
            values[FeeCategory(category).value] = amount
        return FeeBreakdown(**values)


class FeeResolverService(BaseService):
    """
    Single place where per-category amounts and their rounding are decided.

    ``resolve`` is pure over an already loaded student; ``resolve_fees``
    is the lookup-by-id entry point.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.students = StudentRepository(db_session)
        self.fee_structures = FeeStructureRepository(db_session)

    def resolve(self, student: Student, selected: Iterable[FeeCategory]) -> FeeBreakdown:
        """
        Amounts owed by ``student`` for the selected categories.

        Raises:
            ValidationError: negative snapshot values or unknown categories
        """
        categories = expand_categories(selected)
        full = self._from_snapshot(
            tuition=self._tuition_for(student, student.original_tuition_fee),
            admission=student.original_admission_fee,
            exam=student.original_exam_fee,
            other=student.original_other_fee,
        )
        return full.restricted_to(categories)

    def resolve_fees(
        self,
        student_id: UUID,
        selected: Iterable[FeeCategory],
    ) -> ServiceResult[FeeBreakdown]:
        try:
            student = self.students.get_by_id(student_id)
            return ServiceResult.success(self.resolve(student, selected))
        except Exception as e:
            return self._handle_exception(e, "resolve fees", student_id)

    def resolve_opening(
        self,
        student: Student,
        class_id: UUID,
        admission_fee: Decimal,
        as_of: date,
    ) -> FeeBreakdown:
        """
        Opening challan amounts: tuition and exam plus the admission fee
        fixed at approval.

        Students admitted before snapshots existed fall back to the class
        fee catalog active on ``as_of``.
        """
        if student.has_fee_snapshot:
            tuition_base = student.original_tuition_fee
            exam = student.original_exam_fee
        else:
            active = self.fee_structures.find_active_for_class(
                class_id,
                (FeeCategory.TUITION, FeeCategory.EXAM),
                as_of,
            )
            tuition_base = active[FeeCategory.TUITION].amount if FeeCategory.TUITION in active else None
            exam = active[FeeCategory.EXAM].amount if FeeCategory.EXAM in active else None
            self._logger.info(
                "No fee snapshot, using class fee catalog",
                extra={"student_id": str(student.id), "class_id": str(class_id)},
            )

        full = self._from_snapshot(
            tuition=self._tuition_for(student, tuition_base),
            admission=admission_fee,
            exam=exam,
            other=None,
        )
        return full.restricted_to(
            {FeeCategory.TUITION, FeeCategory.ADMISSION} | EXAM_CATEGORIES
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _tuition_for(student: Student, base: Optional[Decimal]) -> Optional[Decimal]:
        if student.use_custom_fees and student.custom_tuition_fee is not None:
            return student.custom_tuition_fee
        return base

    @staticmethod
    def _from_snapshot(tuition, admission, exam, other) -> FeeBreakdown:
        tuition = validate_amount(tuition, "tuition_fee")
        admission = validate_amount(admission, "admission_fee")
        mid, final = split_exam_fee(validate_amount(exam, "exam_fee"))
        sports, science_lab, computer_lab = split_other_fee(validate_amount(other, "other_fee"))
        return FeeBreakdown(
            tuition=tuition,
            admission=admission,
            mid_exam=mid,
            final_exam=final,
            sports=sports,
            science_lab=science_lab,
            computer_lab=computer_lab,
        )
