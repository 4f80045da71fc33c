"""
Duplicate billing guard.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from challan_engine.repositories.challan import ChallanRepository
from challan_engine.core.exceptions import DuplicateBillingError
from challan_engine.core.logging import get_logger

logger = get_logger(__name__)


class DuplicateGuard:
    """
    Advisory check for an existing live challan in a period.

    The partial unique index on challans is what actually prevents a
    second row; this lookup lets callers fail early with a readable
    message.
    """

    def __init__(self, db_session: Session):
        self.challans = ChallanRepository(db_session)

    def exists(self, student_id: UUID, period: str, exclude_id: Optional[UUID] = None) -> bool:
        return self.challans.exists_for_period(student_id, period, exclude_id)

    def ensure_absent(
        self,
        student_id: UUID,
        period: str,
        student_name: Optional[str] = None,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        """
        Raises:
            DuplicateBillingError: a live challan exists for the period
        """
        existing = self.challans.find_live_for_period(student_id, period, exclude_id)
        if existing is not None:
            logger.warning(
                "Duplicate billing attempt",
                extra={
                    "student_id": str(student_id),
                    "month": period,
                    "existing_challan": existing.challan_number,
                },
            )
            raise DuplicateBillingError(
                student_id,
                period,
                student_name=student_name,
                existing_challan_id=existing.id,
            )
