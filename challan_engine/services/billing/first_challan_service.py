"""
First Challan Service

Issues the opening challan of a newly admitted student: the admission
fee fixed at approval plus the first period's tuition and exam fees.
"""

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from challan_engine.services.base import BaseService, ServiceResult
from challan_engine.services.billing.fee_resolver_service import FeeResolverService
from challan_engine.services.billing.challan_lifecycle_service import ChallanLifecycleService
from challan_engine.services.billing.duplicate_guard import DuplicateGuard
from challan_engine.repositories.student import StudentRepository
from challan_engine.models.challan.challan import Challan
from challan_engine.models.base.enums import ChallanType
from challan_engine.schemas.challan import FirstChallanRequest
from challan_engine.core.config import settings
from challan_engine.core.exceptions import NotFoundError
from challan_engine.core.validators import (
    ZERO,
    period_for_date,
    period_label,
    period_start,
    validate_billing_period,
)


class FirstChallanService(BaseService):
    """
    Opening challan for an approved admission.

    Admission approval may be retried, so the call is idempotent: a
    second call for the same student and period fails with
    DUPLICATE_BILLING and creates nothing.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.students = StudentRepository(db_session)
        self.resolver = FeeResolverService(db_session)
        self.lifecycle = ChallanLifecycleService(db_session)
        self.guard = DuplicateGuard(db_session)

    def generate_first_challan(
        self,
        request: FirstChallanRequest,
        actor_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> ServiceResult[Challan]:
        today = today or date.today()
        period = request.period or period_for_date(today)

        try:
            validate_billing_period(period)

            with self.transaction():
                student = self.students.get_by_id(request.student_id)
                if self.students.get_class(request.class_id) is None:
                    raise NotFoundError("Class", request.class_id)

                self.guard.ensure_absent(student.id, period, student_name=student.name)

                fees = self.resolver.resolve_opening(
                    student,
                    request.class_id,
                    request.admission_fee,
                    as_of=period_start(period),
                )
                challan = self.lifecycle.build_challan(
                    student,
                    period,
                    fees,
                    discount=request.discount,
                    carried_balance=ZERO,
                    due_date=today + timedelta(days=settings.billing.FIRST_CHALLAN_DUE_DAYS),
                    notes=f"First challan - New admission for {period_label(period)}",
                    created_by=actor_id,
                    is_first_challan=True,
                    challan_type=ChallanType.FIRST_ADMISSION,
                )

            self._log_operation(
                "first challan generated",
                challan.challan_number,
                extra={"student_id": str(request.student_id), "month": period},
            )
            return ServiceResult.success(challan, message="First challan generated")
        except Exception as e:
            return self._handle_exception(e, "generate first challan", request.student_id)
