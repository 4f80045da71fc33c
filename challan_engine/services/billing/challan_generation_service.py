"""
Challan Generation Service

Batch billing across a cohort, batch previews and one-off challans for
a single student.

Each student in a batch is billed in its own transaction: a failure is
rolled back for that student only, recorded in the result and the run
continues with the next student.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from challan_engine.services.base import BaseService, ServiceResult
from challan_engine.services.billing.fee_resolver_service import (
    BILLABLE_CATEGORIES,
    FeeResolverService,
    expand_categories,
)
from challan_engine.services.billing.adjustment_service import AdjustmentService
from challan_engine.services.billing.challan_lifecycle_service import ChallanLifecycleService
from challan_engine.services.billing.outcome_report import OutcomeReport
from challan_engine.repositories.student import StudentRepository
from challan_engine.models.challan.challan import Challan
from challan_engine.models.base.enums import FeeCategory
from challan_engine.schemas.challan import (
    BatchGenerateRequest,
    BatchPreviewRequest,
    BatchResult,
    IndividualChallanRequest,
    PreviewResult,
)
from challan_engine.core.config import settings
from challan_engine.core.exceptions import (
    BaseAppException,
    DuplicateBillingError,
    PersistenceError,
    ValidationError,
)
from challan_engine.core.validators import MONEY_QUANTUM, ZERO, validate_billing_period


class ChallanGenerationService(BaseService):
    """
    Orchestrates Resolve -> Adjust -> Guard -> Number -> Create per student.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.students = StudentRepository(db_session)
        self.resolver = FeeResolverService(db_session)
        self.adjuster = AdjustmentService(db_session)
        self.lifecycle = ChallanLifecycleService(db_session)

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    def generate_batch(
        self,
        request: BatchGenerateRequest,
        actor_id: Optional[UUID] = None,
    ) -> ServiceResult[BatchResult]:
        """
        Bill every active student of the cohort for ``request.month``.

        Per-student errors never abort the run. The result carries exact
        success/failure counts and a bounded list of messages.
        """
        try:
            validate_billing_period(request.month)
            categories = expand_categories(request.categories)
        except ValidationError as e:
            return self._handle_exception(e, "generate batch")

        due_date = request.due_date or self.lifecycle.default_due_date()
        report = OutcomeReport(
            BatchResult(month=request.month),
            settings.billing.MAX_BATCH_ERROR_MESSAGES,
        )

        self._logger.info(
            "Batch generation started",
            extra={
                "month": request.month,
                "class_ids": [str(c) for c in request.class_ids or []],
                "categories": sorted(c.value for c in categories),
                "carry_forward": request.carry_forward,
            },
        )

        try:
            for student_ids in self.students.active_id_chunks(
                settings.billing.BATCH_CHUNK_SIZE,
                class_ids=request.class_ids,
            ):
                for student_id in student_ids:
                    self._bill_student(student_id, request, categories, due_date, actor_id, report)
        except (BaseAppException, SQLAlchemyError) as e:
            # Cohort loading failed; students billed so far stay committed
            return self._handle_exception(
                e,
                "generate batch",
                additional_context={
                    "success_count": report.result.success_count,
                    "failure_count": report.result.failure_count,
                },
            )

        self._logger.info(
            "Batch generation finished",
            extra={
                "month": request.month,
                "success_count": report.result.success_count,
                "failure_count": report.result.failure_count,
            },
        )
        return ServiceResult.success(
            report.result,
            message=(
                f"Generated {report.result.success_count} challan(s), "
                f"{report.result.failure_count} failed"
            ),
        )

    def _bill_student(
        self,
        student_id: UUID,
        request: BatchGenerateRequest,
        categories: Iterable[FeeCategory],
        due_date: date,
        actor_id: Optional[UUID],
        report: OutcomeReport[BatchResult],
    ) -> None:
        student = self.students.find_by_id(student_id)
        if student is None:
            report.failed(f"Error for student {student_id}: student no longer exists")
            return
        name = student.name

        try:
            with self.transaction():
                fees = self.resolver.resolve(student, categories)
                adjustment = self.adjuster.adjust(
                    fees.subtotal, student, request.month, request.carry_forward,
                )
                self.lifecycle.build_challan(
                    student,
                    request.month,
                    fees,
                    adjustment.discount,
                    adjustment.carried_balance,
                    due_date,
                    request.notes,
                    actor_id,
                )
            report.succeeded()
        except DuplicateBillingError:
            report.failed(f"Challan already exists for {name}")
        except PersistenceError as e:
            self._logger.error(
                f"Failed to create challan for {name}: {e}",
                exc_info=True,
                extra={"student_id": str(student_id), "month": request.month},
            )
            report.failed(f"Failed to create challan for {name}: {e.message}")
        except BaseAppException as e:
            self._logger.warning(
                f"Skipped student {name}: {e}",
                extra={"student_id": str(student_id), "month": request.month},
            )
            report.failed(f"Error for {name}: {e.message}")
        except SQLAlchemyError as e:
            self._logger.error(
                f"Failed to create challan for {name}: {e}",
                exc_info=True,
                extra={"student_id": str(student_id), "month": request.month},
            )
            report.failed(f"Failed to create challan for {name}: database error")

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    def preview(self, request: BatchPreviewRequest) -> ServiceResult[PreviewResult]:
        """
        Estimate a batch run from the first few students of the cohort.

        The sample is the first ``PREVIEW_SAMPLE_SIZE`` active students by
        id; totals are extrapolated linearly, so the result is an estimate.
        """
        try:
            validate_billing_period(request.month)
            categories = expand_categories(request.categories)

            total_students = self.students.count_active(class_ids=request.class_ids)
            if total_students == 0:
                return ServiceResult.success(
                    PreviewResult(
                        estimated_total_students=0,
                        estimated_total_amount=ZERO,
                        estimated_average=ZERO,
                        estimated_students_with_carried_balance=0,
                        sample_size=0,
                        sample_students_with_carried_balance=0,
                    ),
                    message="No active students in cohort",
                )

            sample = self.students.list_active(
                limit=settings.billing.PREVIEW_SAMPLE_SIZE,
                class_ids=request.class_ids,
            )
            sample_total = ZERO
            with_balance = 0
            fee_totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)

            for student in sample:
                fees = self.resolver.resolve(student, categories)
                adjustment = self.adjuster.adjust(
                    fees.subtotal, student, request.month, request.carry_forward,
                )
                sample_total += adjustment.total
                if adjustment.has_carried_balance:
                    with_balance += 1
                fee_totals["monthly_fee"] += fees.monthly_fee
                fee_totals["admission_fee"] += fees.admission_fee
                fee_totals["exam_fee"] += fees.exam_fee
                fee_totals["other_fees"] += fees.other_fees
                fee_totals["previous_balance"] += adjustment.carried_balance
                fee_totals["discount"] += adjustment.discount

            sample_size = len(sample)
            average = (sample_total / sample_size).quantize(MONEY_QUANTUM)
            estimate = PreviewResult(
                estimated_total_students=total_students,
                estimated_total_amount=(average * total_students).quantize(MONEY_QUANTUM),
                estimated_average=average,
                estimated_students_with_carried_balance=round(with_balance * total_students / sample_size),
                sample_size=sample_size,
                sample_students_with_carried_balance=with_balance,
                sample_fee_totals=dict(fee_totals),
            )
            return ServiceResult.success(
                estimate,
                message=f"Estimate based on a sample of {sample_size} student(s)",
                metadata={"is_estimate": True},
            )
        except Exception as e:
            return self._handle_exception(e, "preview batch")

    # -------------------------------------------------------------------------
    # Individual
    # -------------------------------------------------------------------------

    def generate_for_student(
        self,
        request: IndividualChallanRequest,
        actor_id: Optional[UUID] = None,
    ) -> ServiceResult[Challan]:
        """
        Bill one student, optionally with operator entered amounts.

        Tuition is always included. Overrides replace resolved amounts of
        billable sub-categories that are part of the selection.
        """
        try:
            categories = expand_categories(list(request.categories) + [FeeCategory.TUITION])
            self._validate_overrides(request.amount_overrides, categories)

            with self.transaction():
                student = self.students.get_by_id(request.student_id)
                fees = self.resolver.resolve(student, categories)
                if request.amount_overrides:
                    fees = fees.with_overrides(request.amount_overrides)

                adjustment = self.adjuster.adjust(
                    fees.subtotal,
                    student,
                    request.month,
                    request.carry_forward,
                    discount_override=request.discount_override,
                )
                challan = self.lifecycle.build_challan(
                    student,
                    request.month,
                    fees,
                    adjustment.discount,
                    adjustment.carried_balance,
                    request.due_date or self.lifecycle.default_due_date(),
                    request.notes,
                    actor_id,
                )
            return ServiceResult.success(challan, message="Challan created")
        except Exception as e:
            return self._handle_exception(e, "generate individual challan", request.student_id)

    @staticmethod
    def _validate_overrides(
        overrides: Dict[FeeCategory, Decimal],
        categories: Iterable[FeeCategory],
    ) -> None:
        selected = set(categories)
        errors: Dict[str, List[str]] = {}
        for category in overrides:
            if category not in BILLABLE_CATEGORIES:
                errors[category.value] = ["override a sub-category, not a fee pool"]
            elif category not in selected:
                errors[category.value] = ["category is not selected"]
        if errors:
            raise ValidationError("Invalid amount overrides", field_errors=errors)
