"""
FastAPI dependencies: database session, acting user and service
factories, plus the ServiceResult to HTTP translation used by routers.
"""

from __future__ import annotations

from typing import Optional, TypeVar
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from challan_engine.core.database import get_db
from challan_engine.core.logging import actor_id as actor_context
from challan_engine.services.base import ErrorCode, ServiceResult
from challan_engine.services.billing import (
    ChallanGenerationService,
    ChallanLifecycleService,
    CollectionReportService,
    FeeStructureService,
    FirstChallanService,
)

T = TypeVar("T")

# Status code for each failed ServiceResult code
_STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DUPLICATE_BILLING: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PERSISTENCE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# ------------------------------------------------------------------ #
# Acting user
# ------------------------------------------------------------------ #
def get_actor_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> Optional[UUID]:
    """
    Acting user supplied by the identity provider in front of the API.

    The id is pushed into the logging context for the request.
    """
    if not x_user_id:
        return None
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id header must be a UUID",
        )
    actor_context.set(str(user_id))
    return user_id


# ------------------------------------------------------------------ #
# Service factories
# ------------------------------------------------------------------ #
def get_lifecycle_service(db: Session = Depends(get_db)) -> ChallanLifecycleService:
    return ChallanLifecycleService(db)


def get_generation_service(db: Session = Depends(get_db)) -> ChallanGenerationService:
    return ChallanGenerationService(db)


def get_first_challan_service(db: Session = Depends(get_db)) -> FirstChallanService:
    return FirstChallanService(db)


def get_report_service(db: Session = Depends(get_db)) -> CollectionReportService:
    return CollectionReportService(db)


def get_fee_structure_service(db: Session = Depends(get_db)) -> FeeStructureService:
    return FeeStructureService(db)


# ------------------------------------------------------------------ #
# Result translation
# ------------------------------------------------------------------ #
def unwrap_result(result: ServiceResult[T]) -> T:
    """
    Return the data of a successful result or raise the matching
    HTTPException with the error dict as detail.
    """
    if result.is_success:
        return result.data

    error = result.error
    raise HTTPException(
        status_code=_STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.to_dict(),
    )
