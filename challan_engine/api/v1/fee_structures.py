"""
Fee structure endpoints: append versions and read the catalog.
"""

from __future__ import annotations

from datetime import date as Date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from challan_engine.api.deps import get_actor_id, get_fee_structure_service, unwrap_result
from challan_engine.models.base.enums import FeeCategory
from challan_engine.schemas.fee_structure import FeeStructureCreate, FeeStructureResponse
from challan_engine.services.billing import FeeStructureService

router = APIRouter(prefix="/fee-structures", tags=["Fee Structures"])


@router.post("", response_model=FeeStructureResponse, status_code=status.HTTP_201_CREATED)
def create_fee_structure_version(
    payload: FeeStructureCreate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    service: FeeStructureService = Depends(get_fee_structure_service),
) -> FeeStructureResponse:
    structure = unwrap_result(service.create_version(payload, actor_id=actor_id))
    return FeeStructureResponse.model_validate(structure)


@router.get("/classes/{class_id}/active", response_model=FeeStructureResponse)
def get_active_fee_structure(
    class_id: UUID,
    category: FeeCategory = Query(...),
    as_of: Optional[Date] = Query(default=None),
    service: FeeStructureService = Depends(get_fee_structure_service),
) -> FeeStructureResponse:
    structure = unwrap_result(service.get_active(class_id, category, as_of))
    return FeeStructureResponse.model_validate(structure)


@router.get("/classes/{class_id}/history", response_model=List[FeeStructureResponse])
def fee_structure_history(
    class_id: UUID,
    service: FeeStructureService = Depends(get_fee_structure_service),
) -> List[FeeStructureResponse]:
    return [FeeStructureResponse.model_validate(s) for s in unwrap_result(service.history(class_id))]
