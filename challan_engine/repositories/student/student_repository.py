"""
Student repository.

Read access to students for billing: lookups, active cohorts
and keyset-paged iteration for batch runs.
"""

from typing import Iterator, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.orm import Session, joinedload

from challan_engine.models.student.student import Student
from challan_engine.models.student.school_class import SchoolClass
from challan_engine.models.challan.challan import Challan
from challan_engine.models.base.enums import ChallanStatus, StudentStatus
from challan_engine.repositories.base.base_repository import BaseRepository


class StudentRepository(BaseRepository[Student]):
    """
    Student repository.

    Handles:
        - Class lookup
        - Active student cohorts ordered by id
        - Chunked iteration so batch runs never load every student at once
        - Period coverage: active students not yet billed for a month
    """

    resource_name = "Student"

    def __init__(self, db: Session):
        super().__init__(Student, db)

    # ============================================================================
    # LOOKUPS
    # ============================================================================

    def get_class(self, class_id: UUID) -> Optional[SchoolClass]:
        return self.db.get(SchoolClass, class_id)

    # ============================================================================
    # ACTIVE COHORT
    # ============================================================================

    @staticmethod
    def _active(stmt, class_ids: Optional[Sequence[UUID]]):
        stmt = stmt.where(Student.status == StudentStatus.ACTIVE)
        if class_ids:
            stmt = stmt.where(Student.class_id.in_(list(class_ids)))
        return stmt

    def count_active(self, class_ids: Optional[Sequence[UUID]] = None) -> int:
        stmt = self._active(select(func.count()).select_from(Student), class_ids)
        return self.db.scalar(stmt) or 0

    def list_active(
        self,
        limit: Optional[int] = None,
        class_ids: Optional[Sequence[UUID]] = None,
    ) -> List[Student]:
        """
        Active students ordered by id.

        Args:
            limit: Maximum number of students (None for all)
            class_ids: Restrict to these classes (None or empty for all)
        """
        stmt = self._active(select(Student), class_ids).order_by(Student.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt))

    def active_id_chunks(
        self,
        chunk_size: int,
        class_ids: Optional[Sequence[UUID]] = None,
    ) -> Iterator[List[UUID]]:
        """
        Yield ids of active students in ascending chunks.

        Keyset pagination on id: each chunk starts after the last id of
        the previous one, so students inserted mid-run cannot shift pages.
        """
        last_id: Optional[UUID] = None
        while True:
            stmt = (
                self._active(select(Student.id), class_ids)
                .order_by(Student.id)
                .limit(chunk_size)
            )
            if last_id is not None:
                stmt = stmt.where(Student.id > last_id)

            ids = list(self.db.scalars(stmt))
            if not ids:
                return
            yield ids
            if len(ids) < chunk_size:
                return
            last_id = ids[-1]

    # ============================================================================
    # PERIOD COVERAGE
    # ============================================================================

    def list_active_without_challan(
        self,
        month: str,
        class_ids: Optional[Sequence[UUID]] = None,
    ) -> List[Student]:
        """
        Active students with no live challan for ``month``, by name.

        A cancelled challan leaves its period open, so those students
        are listed.
        """
        billed = exists().where(
            Challan.student_id == Student.id,
            Challan.month == month,
            Challan.status != ChallanStatus.CANCELLED,
        )
        stmt = (
            self._active(select(Student), class_ids)
            .options(joinedload(Student.school_class))
            .where(~billed)
            .order_by(Student.name, Student.id)
        )
        return list(self.db.scalars(stmt))
