"""
Fee Structure Repository

Versioned fee catalog queries: active entry lookup, version
appends and per-class history.
"""

from datetime import date as Date
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from challan_engine.models.fee_structure.fee_structure import FeeStructure
from challan_engine.models.base.enums import FeeCategory
from challan_engine.repositories.base.base_repository import BaseRepository


class FeeStructureRepository(BaseRepository[FeeStructure]):
    """
    Fee Structure Repository

    Entries are append-only: a new schedule is a new row with the next
    version number for its (class, category).
    """

    resource_name = "FeeStructure"

    def __init__(self, db: Session):
        super().__init__(FeeStructure, db)

    # ============================================================
    # Active Lookup
    # ============================================================

    def find_active(
        self,
        class_id: UUID,
        category: FeeCategory,
        as_of: Date,
    ) -> Optional[FeeStructure]:
        """
        Newest version whose effective date is on or before ``as_of``.

        Returns:
            FeeStructure or None when the class has no entry yet
        """
        stmt = (
            select(FeeStructure)
            .where(
                FeeStructure.class_id == class_id,
                FeeStructure.category == category,
                FeeStructure.effective_from <= as_of,
            )
            .order_by(FeeStructure.version.desc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def find_active_for_class(
        self,
        class_id: UUID,
        categories: Iterable[FeeCategory],
        as_of: Date,
    ) -> Dict[FeeCategory, FeeStructure]:
        """Active entry per requested category; missing categories are omitted."""
        active: Dict[FeeCategory, FeeStructure] = {}
        for category in categories:
            structure = self.find_active(class_id, category, as_of)
            if structure is not None:
                active[category] = structure
        return active

    # ============================================================
    # Versioning
    # ============================================================

    def latest_version(self, class_id: UUID, category: FeeCategory) -> int:
        """Highest version for (class, category), 0 when none exist."""
        stmt = select(func.max(FeeStructure.version)).where(
            FeeStructure.class_id == class_id,
            FeeStructure.category == category,
        )
        return self.db.scalar(stmt) or 0

    def append_version(self, structure: FeeStructure) -> FeeStructure:
        """Assign the next version number and insert."""
        structure.version = self.latest_version(structure.class_id, structure.category) + 1
        return self.create(structure)

    def history(self, class_id: UUID) -> List[FeeStructure]:
        """All versions for a class, newest first."""
        stmt = (
            select(FeeStructure)
            .where(FeeStructure.class_id == class_id)
            .order_by(
                FeeStructure.effective_from.desc(),
                FeeStructure.version.desc(),
                FeeStructure.category,
            )
        )
        return list(self.db.scalars(stmt))
