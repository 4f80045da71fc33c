"""
Fee Structure Service

Versioned class fee catalog. Existing versions are never edited; a new
schedule is appended as the next version.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from challan_engine.services.base import BaseService, ServiceResult
from challan_engine.repositories.fee_structure import FeeStructureRepository
from challan_engine.repositories.student import StudentRepository
from challan_engine.models.fee_structure.fee_structure import FeeStructure
from challan_engine.models.base.enums import FeeCategory
from challan_engine.schemas.fee_structure import FeeStructureCreate
from challan_engine.core.exceptions import NotFoundError
from challan_engine.core.validators import validate_amount


class FeeStructureService(BaseService):

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.fee_structures = FeeStructureRepository(db_session)
        self.students = StudentRepository(db_session)

    def create_version(
        self,
        data: FeeStructureCreate,
        actor_id: Optional[UUID] = None,
    ) -> ServiceResult[FeeStructure]:
        """Append a new version for (class, category)."""
        try:
            with self.transaction():
                if self.students.get_class(data.class_id) is None:
                    raise NotFoundError("Class", data.class_id)

                structure = self.fee_structures.append_version(FeeStructure(
                    class_id=data.class_id,
                    category=data.category,
                    frequency=data.frequency,
                    amount=validate_amount(data.amount),
                    effective_from=data.effective_from,
                    description=data.description,
                    created_by=actor_id,
                    updated_by=actor_id,
                ))

            self._log_operation(
                "fee structure version created",
                structure.id,
                extra={
                    "class_id": str(data.class_id),
                    "category": data.category.value,
                    "version": structure.version,
                },
            )
            return ServiceResult.success(structure, message="Fee structure version created")
        except Exception as e:
            return self._handle_exception(e, "create fee structure version", data.class_id)

    def get_active(
        self,
        class_id: UUID,
        category: FeeCategory,
        as_of: Optional[date] = None,
    ) -> ServiceResult[FeeStructure]:
        """Newest version effective on ``as_of`` (default today)."""
        as_of = as_of or date.today()
        try:
            structure = self.fee_structures.find_active(class_id, category, as_of)
            if structure is None:
                return ServiceResult.not_found("FeeStructure", f"{class_id}/{category.value}")
            return ServiceResult.success(structure)
        except Exception as e:
            return self._handle_exception(e, "get active fee structure", class_id)

    def history(self, class_id: UUID) -> ServiceResult[List[FeeStructure]]:
        try:
            return ServiceResult.success(self.fee_structures.history(class_id))
        except Exception as e:
            return self._handle_exception(e, "list fee structure history", class_id)
