"""
Challan Repository

Persistence for fee challans: period lookups backing the duplicate
guard, carry-forward sums, guarded inserts and bulk status changes.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from challan_engine.models.challan.challan import Challan, UNPAID_STATUSES
from challan_engine.models.base.enums import ChallanStatus
from challan_engine.models.base.mixins import utcnow
from challan_engine.repositories.base.base_repository import BaseRepository
from challan_engine.core.exceptions import (
    DuplicateBillingError,
    PersistenceError,
    handle_database_exception,
)
from challan_engine.core.logging import get_logger
from challan_engine.core.validators import ZERO, to_money

logger = get_logger(__name__)


class ChallanRepository(BaseRepository[Challan]):
    """
    Challan Repository

    A "live" challan is any challan that is not cancelled; at most one
    live challan exists per (student, month).
    """

    resource_name = "Challan"

    def __init__(self, db: Session):
        super().__init__(Challan, db)

    # ============================================================
    # Period Lookups
    # ============================================================

    def find_live_for_period(
        self,
        student_id: UUID,
        month: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[Challan]:
        """Non-cancelled challan for (student, month), if any."""
        stmt = select(Challan).where(
            Challan.student_id == student_id,
            Challan.month == month,
            Challan.status != ChallanStatus.CANCELLED,
        )
        if exclude_id is not None:
            stmt = stmt.where(Challan.id != exclude_id)
        return self.db.scalars(stmt.limit(1)).first()

    def exists_for_period(
        self,
        student_id: UUID,
        month: str,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        return self.find_live_for_period(student_id, month, exclude_id) is not None

    def sum_unpaid_before(self, student_id: UUID, month: str) -> Decimal:
        """
        Sum of ``total_amount`` over unpaid challans for periods strictly
        earlier than ``month``.

        Period keys are zero padded ``YYYY-MM`` strings, so string
        comparison orders them chronologically.
        """
        stmt = select(func.coalesce(func.sum(Challan.total_amount), 0)).where(
            Challan.student_id == student_id,
            Challan.status.in_(UNPAID_STATUSES),
            Challan.month < month,
        )
        return to_money(self.db.scalar(stmt))

    def list_for_student(
        self,
        student_id: UUID,
        statuses: Optional[Iterable[ChallanStatus]] = None,
    ) -> List[Challan]:
        """Challans of a student, newest period first."""
        stmt = select(Challan).where(Challan.student_id == student_id)
        if statuses:
            stmt = stmt.where(Challan.status.in_(list(statuses)))
        stmt = stmt.order_by(Challan.month.desc(), Challan.created_at.desc())
        return list(self.db.scalars(stmt))

    def latest_challan_number(self) -> Optional[str]:
        """Number of the most recently created challan across the system."""
        stmt = (
            select(Challan.challan_number)
            .order_by(Challan.created_at.desc(), Challan.challan_number.desc())
            .limit(1)
        )
        return self.db.scalar(stmt)

    def number_exists(self, challan_number: str) -> bool:
        stmt = select(Challan.id).where(Challan.challan_number == challan_number).limit(1)
        return self.db.scalar(stmt) is not None

    # ============================================================
    # Guarded Insert
    # ============================================================

    def insert(self, challan: Challan, student_name: Optional[str] = None) -> Challan:
        """
        Insert a challan, reporting a period collision as a duplicate.

        The partial unique index on (student_id, month) is the
        authoritative duplicate signal. A failed flush leaves the
        transaction unusable, so it is rolled back before the collision
        is re-checked against live rows.

        Raises:
            DuplicateBillingError: a live challan already exists for the period
            PersistenceError: any other storage failure
        """
        try:
            self.db.add(challan)
            self.db.flush()
        except IntegrityError as e:
            student_id, month = challan.student_id, challan.month
            self.db.rollback()

            existing = self.find_live_for_period(student_id, month)
            if existing is not None:
                logger.warning(
                    "Duplicate challan rejected by storage constraint",
                    extra={"student_id": str(student_id), "month": month},
                )
                raise DuplicateBillingError(
                    student_id,
                    month,
                    student_name=student_name,
                    existing_challan_id=existing.id,
                ) from e

            raise PersistenceError(
                f"Constraint violation: {e.orig}",
                operation="insert challan",
                table=Challan.__tablename__,
            ) from e
        except SQLAlchemyError as e:
            raise handle_database_exception(e, operation="insert challan") from e

        return challan

    # ============================================================
    # Bulk Status Changes
    # ============================================================

    def mark_overdue(self, as_of: Date) -> int:
        """
        Flip every pending challan due before ``as_of`` to overdue.

        Returns:
            Number of challans updated
        """
        stmt = (
            update(Challan)
            .where(
                Challan.status == ChallanStatus.PENDING,
                Challan.due_date < as_of,
            )
            .values(
                status=ChallanStatus.OVERDUE,
                version=Challan.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_bulk(stmt, "mark overdue")

    def mark_paid_for_student(self, student_id: UUID, paid_date: Date) -> int:
        """
        Mark every unpaid challan of a student as paid.

        Returns:
            Number of challans updated
        """
        stmt = (
            update(Challan)
            .where(
                Challan.student_id == student_id,
                Challan.status.in_(UNPAID_STATUSES),
            )
            .values(
                status=ChallanStatus.PAID,
                paid_date=paid_date,
                version=Challan.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_bulk(stmt, "mark paid")

    def _execute_bulk(self, stmt, operation: str) -> int:
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise handle_database_exception(e, operation=operation) from e
        return result.rowcount or 0

    # ============================================================
    # Collection Queries
    # ============================================================

    def list_unpaid(self) -> List[Challan]:
        """Unpaid challans with their students, oldest due date first."""
        stmt = (
            select(Challan)
            .options(joinedload(Challan.student))
            .where(Challan.status.in_(UNPAID_STATUSES))
            .order_by(Challan.due_date, Challan.challan_number)
        )
        return list(self.db.scalars(stmt))

    def list_by_status(self, status: ChallanStatus) -> List[Challan]:
        stmt = (
            select(Challan)
            .options(joinedload(Challan.student))
            .where(Challan.status == status)
            .order_by(Challan.due_date, Challan.challan_number)
        )
        return list(self.db.scalars(stmt))

    def list_pending_due_between(self, start: Date, end: Date) -> List[Challan]:
        """Pending challans whose due date falls in [start, end]."""
        stmt = (
            select(Challan)
            .options(joinedload(Challan.student))
            .where(
                Challan.status == ChallanStatus.PENDING,
                Challan.due_date >= start,
                Challan.due_date <= end,
            )
            .order_by(Challan.due_date, Challan.challan_number)
        )
        return list(self.db.scalars(stmt))

    def total_outstanding(self) -> Decimal:
        stmt = select(func.coalesce(func.sum(Challan.total_amount), 0)).where(
            Challan.status.in_(UNPAID_STATUSES)
        )
        return to_money(self.db.scalar(stmt) or ZERO)
