"""
Challan Lifecycle Service

Creates, corrects, cancels and settles challans.

State machine:
    pending -> paid | overdue | cancelled
    overdue -> paid
    paid, cancelled: terminal

Only pending challans may have their amounts, period or due date edited.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from challan_engine.services.base import BaseService, ServiceResult
from challan_engine.services.billing.fee_resolver_service import FeeBreakdown
from challan_engine.services.billing.challan_numbering_service import ChallanNumberingService
from challan_engine.services.billing.duplicate_guard import DuplicateGuard
from challan_engine.services.billing.outcome_report import OutcomeReport
from challan_engine.repositories.challan import ChallanRepository
from challan_engine.repositories.student import StudentRepository
from challan_engine.models.challan.challan import Challan, compute_total_amount
from challan_engine.models.student.student import Student
from challan_engine.models.base.enums import ChallanStatus, ChallanType
from challan_engine.models.base.mixins import utcnow
from challan_engine.schemas.challan import BulkActionResult, BulkEditRequest, ChallanUpdate
from challan_engine.core.config import settings
from challan_engine.core.exceptions import ConcurrencyError, InvalidStateError, ValidationError
from challan_engine.core.validators import (
    validate_amount,
    validate_billing_period,
)

_EDITABLE_AMOUNTS = ("monthly_fee", "admission_fee", "exam_fee", "other_fees", "discount")
_TOTAL_FIELDS = _EDITABLE_AMOUNTS + ("previous_balance",)


class ChallanLifecycleService(BaseService):
    """
    Owns every write to a challan row.

    ``build_challan`` is the raising building block used inside the
    generators' own transactions; the public operations wrap one unit of
    work each and report through ServiceResult.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.challans = ChallanRepository(db_session)
        self.students = StudentRepository(db_session)
        self.numbering = ChallanNumberingService(db_session)
        self.guard = DuplicateGuard(db_session)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def build_challan(
        self,
        student: Student,
        period: str,
        fees: FeeBreakdown,
        discount: Decimal,
        carried_balance: Decimal,
        due_date: date,
        notes: Optional[str],
        created_by: Optional[UUID],
        is_first_challan: bool = False,
        challan_type: ChallanType = ChallanType.REGULAR,
    ) -> Challan:
        """
        Guard, number and insert a challan in the current transaction.

        Raises:
            ValidationError: malformed period or negative amounts
            DuplicateBillingError: the period is already billed
            PersistenceError: storage failure
        """
        validate_billing_period(period)
        discount = validate_amount(discount, "discount")
        carried_balance = validate_amount(carried_balance, "previous_balance")

        self.guard.ensure_absent(student.id, period, student_name=student.name)

        challan = Challan(
            challan_number=self.numbering.next_number(period),
            student_id=student.id,
            month=period,
            monthly_fee=validate_amount(fees.monthly_fee, "monthly_fee"),
            admission_fee=validate_amount(fees.admission_fee, "admission_fee"),
            exam_fee=validate_amount(fees.exam_fee, "exam_fee"),
            other_fees=validate_amount(fees.other_fees, "other_fees"),
            discount=discount,
            previous_balance=carried_balance,
            status=ChallanStatus.PENDING,
            due_date=due_date,
            is_first_challan=is_first_challan,
            challan_type=challan_type,
            notes=notes,
            generated_by=created_by,
            edit_count=0,
        )
        challan.recalculate_total()

        self.challans.insert(challan, student_name=student.name)

        self._logger.info(
            "Challan created",
            extra={
                "challan_number": challan.challan_number,
                "student_id": str(student.id),
                "month": period,
                "total_amount": str(challan.total_amount),
            },
        )
        return challan

    def create(
        self,
        student_id: UUID,
        period: str,
        fees: FeeBreakdown,
        discount: Decimal,
        carried_balance: Decimal,
        due_date: date,
        notes: Optional[str],
        created_by: Optional[UUID],
    ) -> ServiceResult[Challan]:
        """Create one challan from already resolved amounts."""
        try:
            with self.transaction():
                student = self.students.get_by_id(student_id)
                challan = self.build_challan(
                    student, period, fees, discount, carried_balance,
                    due_date, notes, created_by,
                )
            return ServiceResult.success(challan, message="Challan created")
        except Exception as e:
            return self._handle_exception(e, "create challan", student_id)

    # -------------------------------------------------------------------------
    # Correction
    # -------------------------------------------------------------------------

    def edit(
        self,
        challan_id: UUID,
        changes: ChallanUpdate,
        actor_id: Optional[UUID] = None,
    ) -> ServiceResult[Challan]:
        """
        Correct a pending challan and recompute its total.

        Paid, overdue and cancelled challans are rejected unchanged.
        """
        try:
            with self.transaction():
                challan = self.challans.get_by_id(challan_id)
                self._require_status(challan, ChallanStatus.PENDING, "edit")
                self._check_version(challan, changes.expected_version)

                data = changes.model_dump(exclude_unset=True, exclude={"expected_version"})
                for field in _EDITABLE_AMOUNTS:
                    if data.get(field) is not None:
                        data[field] = validate_amount(data[field], field)
                    else:
                        data.pop(field, None)

                new_month = data.get("month")
                if new_month is not None and new_month != challan.month:
                    validate_billing_period(new_month)
                    self.guard.ensure_absent(challan.student_id, new_month, exclude_id=challan.id)
                elif "month" in data:
                    data.pop("month")

                if "due_date" in data and data["due_date"] is None:
                    data.pop("due_date")

                amounts = {
                    field: data.get(field, getattr(challan, field))
                    for field in _TOTAL_FIELDS
                }
                data.update({
                    "total_amount": compute_total_amount(**amounts),
                    "last_edited_by": actor_id,
                    "last_edited_at": utcnow(),
                    "edit_count": challan.edit_count + 1,
                })
                self.challans.update(challan, data)

            self._logger.info(
                "Challan edited",
                extra={
                    "challan_number": challan.challan_number,
                    "edit_count": challan.edit_count,
                    "total_amount": str(challan.total_amount),
                },
            )
            return ServiceResult.success(challan, message="Challan updated")
        except Exception as e:
            return self._handle_exception(e, "edit challan", challan_id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def cancel(
        self,
        challan_id: UUID,
        expected_version: Optional[int] = None,
        actor_id: Optional[UUID] = None,
        reason: Optional[str] = None,
    ) -> ServiceResult[Challan]:
        """Cancel a pending challan; frees its period for a new challan."""
        try:
            with self.transaction():
                challan = self.challans.get_by_id(challan_id)
                self._require_status(challan, ChallanStatus.PENDING, "cancel")
                self._check_version(challan, expected_version)

                changes = {
                    "status": ChallanStatus.CANCELLED,
                    "last_edited_by": actor_id,
                    "last_edited_at": utcnow(),
                }
                if reason:
                    changes["notes"] = f"{challan.notes}\nCancelled: {reason}" if challan.notes else f"Cancelled: {reason}"
                self.challans.update(challan, changes)

            self._logger.info(
                "Challan cancelled",
                extra={"challan_number": challan.challan_number, "reason": reason},
            )
            return ServiceResult.success(challan, message="Challan cancelled")
        except Exception as e:
            return self._handle_exception(e, "cancel challan", challan_id)

    def mark_paid(
        self,
        challan_id: UUID,
        paid_date: Optional[date] = None,
    ) -> ServiceResult[Challan]:
        """Settle one pending or overdue challan."""
        try:
            with self.transaction():
                challan = self.challans.get_by_id(challan_id)
                if not challan.can_transition_to(ChallanStatus.PAID):
                    raise self._invalid_transition(challan, "mark paid")

                self.challans.update(challan, {
                    "status": ChallanStatus.PAID,
                    "paid_date": paid_date or date.today(),
                })

            self._logger.info(
                "Challan paid",
                extra={"challan_number": challan.challan_number, "paid_date": str(challan.paid_date)},
            )
            return ServiceResult.success(challan, message="Challan marked as paid")
        except Exception as e:
            return self._handle_exception(e, "mark challan paid", challan_id)

    def mark_paid_bulk(
        self,
        student_id: UUID,
        paid_date: Optional[date] = None,
    ) -> ServiceResult[int]:
        """
        Mark every unpaid challan of a student as paid.

        Manual reconciliation only; returns the number of challans changed.
        """
        try:
            with self.transaction():
                self.students.get_by_id(student_id)
                count = self.challans.mark_paid_for_student(student_id, paid_date or date.today())

            self._logger.info(
                "Bulk marked challans paid",
                extra={"student_id": str(student_id), "updated_count": count},
            )
            return ServiceResult.success(count, message=f"{count} challan(s) marked as paid")
        except Exception as e:
            return self._handle_exception(e, "bulk mark challans paid", student_id)

    # -------------------------------------------------------------------------
    # Bulk actions
    # -------------------------------------------------------------------------

    def bulk_edit(
        self,
        request: BulkEditRequest,
        actor_id: Optional[UUID] = None,
    ) -> ServiceResult[BulkActionResult]:
        """
        Apply one discount / due date / notes correction to many challans.

        Each challan is edited in its own transaction with the same rules
        as ``edit``; non-pending or missing challans are counted as
        failures and never block the rest.
        """
        changes = request.model_dump(exclude_unset=True, include={"discount", "due_date", "notes"})
        if not changes:
            return self._handle_exception(
                ValidationError(
                    "Bulk edit needs at least one of discount, due_date or notes",
                    field_errors={"changes": ["no changes supplied"]},
                ),
                "bulk edit challans",
            )

        update = ChallanUpdate(**changes)
        report = OutcomeReport(BulkActionResult(), settings.billing.MAX_BATCH_ERROR_MESSAGES)
        for challan_id in dict.fromkeys(request.challan_ids):
            result = self.edit(challan_id, update, actor_id=actor_id)
            if result.is_success:
                report.succeeded()
            else:
                report.failed(f"Challan {challan_id}: {result.error.message}")

        self._logger.info(
            "Bulk edit finished",
            extra={
                "fields": sorted(changes),
                "success_count": report.result.success_count,
                "failure_count": report.result.failure_count,
            },
        )
        return ServiceResult.success(
            report.result,
            message=f"Updated {report.result.success_count} challan(s), {report.result.failure_count} failed",
        )

    def mark_paid_many(
        self,
        challan_ids: Iterable[UUID],
        paid_date: Optional[date] = None,
    ) -> ServiceResult[BulkActionResult]:
        """Settle each listed challan independently; see ``mark_paid``."""
        paid_date = paid_date or date.today()
        report = OutcomeReport(BulkActionResult(), settings.billing.MAX_BATCH_ERROR_MESSAGES)
        for challan_id in dict.fromkeys(challan_ids):
            result = self.mark_paid(challan_id, paid_date)
            if result.is_success:
                report.succeeded()
            else:
                report.failed(f"Challan {challan_id}: {result.error.message}")

        self._logger.info(
            "Bulk payment finished",
            extra={
                "paid_date": paid_date.isoformat(),
                "success_count": report.result.success_count,
                "failure_count": report.result.failure_count,
            },
        )
        return ServiceResult.success(
            report.result,
            message=f"{report.result.success_count} challan(s) marked as paid, {report.result.failure_count} failed",
        )

    def sweep_overdue(self, as_of: Optional[date] = None) -> ServiceResult[int]:
        """Flip pending challans whose due date is before ``as_of`` to overdue."""
        as_of = as_of or date.today()
        try:
            with self.transaction():
                count = self.challans.mark_overdue(as_of)

            self._logger.info(
                "Overdue sweep finished",
                extra={"as_of": as_of.isoformat(), "updated_count": count},
            )
            return ServiceResult.success(count, message=f"{count} challan(s) marked overdue")
        except Exception as e:
            return self._handle_exception(e, "sweep overdue challans", as_of)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get(self, challan_id: UUID) -> ServiceResult[Challan]:
        try:
            return ServiceResult.success(self.challans.get_by_id(challan_id))
        except Exception as e:
            return self._handle_exception(e, "get challan", challan_id)

    def list_for_student(
        self,
        student_id: UUID,
        statuses: Optional[Iterable[ChallanStatus]] = None,
    ) -> ServiceResult[List[Challan]]:
        try:
            self.students.get_by_id(student_id)
            return ServiceResult.success(self.challans.list_for_student(student_id, statuses))
        except Exception as e:
            return self._handle_exception(e, "list student challans", student_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def default_due_date(today: Optional[date] = None) -> date:
        return (today or date.today()) + timedelta(days=settings.billing.DEFAULT_DUE_DAYS)

    @staticmethod
    def _check_version(challan: Challan, expected_version: Optional[int]) -> None:
        if expected_version is not None and challan.version != expected_version:
            raise ConcurrencyError(
                "Challan",
                challan.id,
                expected_version=expected_version,
                actual_version=challan.version,
            )

    def _require_status(self, challan: Challan, required: ChallanStatus, action: str) -> None:
        if challan.status != required:
            raise self._invalid_transition(challan, action)

    @staticmethod
    def _invalid_transition(challan: Challan, action: str) -> InvalidStateError:
        return InvalidStateError(
            f"Cannot {action} challan {challan.challan_number} in status '{challan.status.value}'",
            current_status=challan.status.value,
            attempted_action=action,
        )
