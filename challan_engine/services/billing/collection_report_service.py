"""
Collection Report Service

Who owes what: unpaid balances grouped per student, the reminder
lists of overdue and soon-due challans and the students a period has
not billed yet.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from challan_engine.services.base import BaseService, ServiceResult
from challan_engine.services.billing.challan_lifecycle_service import ChallanLifecycleService
from challan_engine.repositories.challan import ChallanRepository
from challan_engine.repositories.student import StudentRepository
from challan_engine.models.challan.challan import Challan
from challan_engine.models.base.enums import ChallanStatus
from challan_engine.schemas.challan import (
    PaymentRemindersReport,
    ReminderEntry,
    ReminderStats,
    UnbilledStudentEntry,
    UnbilledStudentsReport,
    UnpaidStudentEntry,
    UnpaidStudentsReport,
)
from challan_engine.core.config import settings
from challan_engine.core.validators import ZERO, validate_billing_period


def _days_overdue(due_date: date, as_of: date) -> int:
    return max(0, (as_of - due_date).days)


class CollectionReportService(BaseService):

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.challans = ChallanRepository(db_session)
        self.students = StudentRepository(db_session)
        self.lifecycle = ChallanLifecycleService(db_session)

    def unpaid_students(self, as_of: Optional[date] = None) -> ServiceResult[UnpaidStudentsReport]:
        """
        Unpaid (pending or overdue) challans grouped per student, most
        overdue first.
        """
        as_of = as_of or date.today()
        try:
            grouped: Dict[UUID, List[Challan]] = {}
            for challan in self.challans.list_unpaid():
                grouped.setdefault(challan.student_id, []).append(challan)

            entries = []
            for challans in grouped.values():
                student = challans[0].student
                oldest_due = min(c.due_date for c in challans)
                entries.append(UnpaidStudentEntry(
                    student_id=student.id,
                    student_name=student.name,
                    roll_number=student.roll_number,
                    class_id=student.class_id,
                    challan_count=len(challans),
                    total_unpaid=sum((c.total_amount for c in challans), ZERO),
                    oldest_due_date=oldest_due,
                    days_overdue=_days_overdue(oldest_due, as_of),
                    challan_numbers=[c.challan_number for c in challans],
                ))

            entries.sort(key=lambda e: (-e.days_overdue, e.student_name))
            critical = sum(
                1 for e in entries
                if e.days_overdue > settings.billing.OVERDUE_CRITICAL_DAYS
            )

            return ServiceResult.success(UnpaidStudentsReport(
                as_of=as_of,
                students=entries,
                total_unpaid=self.challans.total_outstanding(),
                critical_count=critical,
            ))
        except Exception as e:
            return self._handle_exception(e, "build unpaid students report")

    def unbilled_students(
        self,
        month: str,
        class_ids: Optional[Sequence[UUID]] = None,
    ) -> ServiceResult[UnbilledStudentsReport]:
        """Active students still without a live challan for ``month``."""
        try:
            validate_billing_period(month)
            students = self.students.list_active_without_challan(month, class_ids)
            entries = [
                UnbilledStudentEntry(
                    student_id=s.id,
                    student_name=s.name,
                    roll_number=s.roll_number,
                    class_id=s.class_id,
                    class_name=s.school_class.class_name,
                )
                for s in students
            ]
            return ServiceResult.success(UnbilledStudentsReport(
                month=month,
                students=entries,
                total_count=len(entries),
            ))
        except Exception as e:
            return self._handle_exception(e, "build unbilled students report", month)

    def payment_reminders(self, as_of: Optional[date] = None) -> ServiceResult[PaymentRemindersReport]:
        """
        Overdue challans and pending challans due within the reminder
        window. Runs the overdue sweep first so the lists agree with
        ``as_of``.
        """
        as_of = as_of or date.today()

        sweep = self.lifecycle.sweep_overdue(as_of)
        if not sweep.is_success:
            return sweep

        try:
            overdue = [
                self._reminder(c, as_of)
                for c in self.challans.list_by_status(ChallanStatus.OVERDUE)
            ]
            due_soon = [
                self._reminder(c, as_of)
                for c in self.challans.list_pending_due_between(
                    as_of,
                    as_of + timedelta(days=settings.billing.REMINDER_WINDOW_DAYS),
                )
            ]

            stats = ReminderStats(
                overdue_count=len(overdue),
                overdue_amount=self._sum(overdue),
                due_soon_count=len(due_soon),
                due_soon_amount=self._sum(due_soon),
                swept_count=sweep.data,
            )
            return ServiceResult.success(PaymentRemindersReport(
                as_of=as_of,
                overdue=overdue,
                due_soon=due_soon,
                stats=stats,
            ))
        except Exception as e:
            return self._handle_exception(e, "build payment reminders")

    @staticmethod
    def _reminder(challan: Challan, as_of: date) -> ReminderEntry:
        return ReminderEntry(
            challan_id=challan.id,
            challan_number=challan.challan_number,
            student_id=challan.student_id,
            student_name=challan.student.name,
            month=challan.month,
            total_amount=challan.total_amount,
            due_date=challan.due_date,
            days_overdue=_days_overdue(challan.due_date, as_of),
            days_until_due=max(0, (challan.due_date - as_of).days),
        )

    @staticmethod
    def _sum(entries: List[ReminderEntry]) -> Decimal:
        return sum((e.total_amount for e in entries), ZERO)
