"""
Challan endpoints.

Thin layer over the billing services: parse the request, call one
service operation and translate its ServiceResult.
"""

from __future__ import annotations

from datetime import date as Date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from challan_engine.api.deps import (
    get_actor_id,
    get_first_challan_service,
    get_generation_service,
    get_lifecycle_service,
    get_report_service,
    unwrap_result,
)
from challan_engine.models.base.enums import ChallanStatus
from challan_engine.schemas.challan import (
    BILLING_PERIOD_PATTERN,
    BatchGenerateRequest,
    BatchPreviewRequest,
    BatchResult,
    BulkActionResult,
    BulkEditRequest,
    BulkMarkPaidRequest,
    BulkMarkPaidResult,
    BulkPayRequest,
    ChallanCancelRequest,
    ChallanPayRequest,
    ChallanResponse,
    ChallanUpdate,
    FirstChallanRequest,
    IndividualChallanRequest,
    PaymentRemindersReport,
    PreviewResult,
    SweepOverdueResult,
    UnbilledStudentsReport,
    UnpaidStudentsReport,
)
from challan_engine.services.billing import (
    ChallanGenerationService,
    ChallanLifecycleService,
    CollectionReportService,
    FirstChallanService,
)

router = APIRouter(prefix="/challans", tags=["Challans"])


# ------------------------------------------------------------------ #
# Generation
# ------------------------------------------------------------------ #
@router.post("/batch", response_model=BatchResult)
def generate_batch(
    payload: BatchGenerateRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    service: ChallanGenerationService = Depends(get_generation_service),
) -> BatchResult:
    return unwrap_result(service.generate_batch(payload, actor_id=actor_id))


@router.post("/preview", response_model=PreviewResult)
def preview_batch(
    payload: BatchPreviewRequest,
    service: ChallanGenerationService = Depends(get_generation_service),
) -> PreviewResult:
    """Estimated totals for a batch run, extrapolated from a small sample."""
    return unwrap_result(service.preview(payload))


@router.post("/first", response_model=ChallanResponse, status_code=status.HTTP_201_CREATED)
def generate_first_challan(
    payload: FirstChallanRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    service: FirstChallanService = Depends(get_first_challan_service),
) -> ChallanResponse:
    challan = unwrap_result(service.generate_first_challan(payload, actor_id=actor_id))
    return ChallanResponse.model_validate(challan)


@router.post("/individual", response_model=ChallanResponse, status_code=status.HTTP_201_CREATED)
def generate_individual_challan(
    payload: IndividualChallanRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    service: ChallanGenerationService = Depends(get_generation_service),
) -> ChallanResponse:
    challan = unwrap_result(service.generate_for_student(payload, actor_id=actor_id))
    return ChallanResponse.model_validate(challan)


# ------------------------------------------------------------------ #
# Reports and sweeps
# ------------------------------------------------------------------ #
@router.get("/reports/unpaid", response_model=UnpaidStudentsReport)
def unpaid_students(
    as_of: Optional[Date] = Query(default=None),
    service: CollectionReportService = Depends(get_report_service),
) -> UnpaidStudentsReport:
    return unwrap_result(service.unpaid_students(as_of))


@router.get("/reports/reminders", response_model=PaymentRemindersReport)
def payment_reminders(
    as_of: Optional[Date] = Query(default=None),
    service: CollectionReportService = Depends(get_report_service),
) -> PaymentRemindersReport:
    return unwrap_result(service.payment_reminders(as_of))


@router.get("/reports/unbilled", response_model=UnbilledStudentsReport)
def unbilled_students(
    month: str = Query(..., pattern=BILLING_PERIOD_PATTERN),
    class_ids: Optional[List[UUID]] = Query(default=None),
    service: CollectionReportService = Depends(get_report_service),
) -> UnbilledStudentsReport:
    """Active students with no live challan for the month."""
    return unwrap_result(service.unbilled_students(month, class_ids))


@router.post("/sweep-overdue", response_model=SweepOverdueResult)
def sweep_overdue(
    as_of: Optional[Date] = Query(default=None),
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> SweepOverdueResult:
    as_of = as_of or Date.today()
    count = unwrap_result(service.sweep_overdue(as_of))
    return SweepOverdueResult(as_of=as_of, updated_count=count)


@router.post("/students/{student_id}/mark-paid", response_model=BulkMarkPaidResult)
def mark_student_paid(
    student_id: UUID,
    payload: Optional[BulkMarkPaidRequest] = None,
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> BulkMarkPaidResult:
    paid_date = payload.paid_date if payload else None
    count = unwrap_result(service.mark_paid_bulk(student_id, paid_date))
    return BulkMarkPaidResult(student_id=student_id, updated_count=count)


@router.get("/students/{student_id}", response_model=List[ChallanResponse])
def list_student_challans(
    student_id: UUID,
    status_filter: Optional[List[ChallanStatus]] = Query(default=None, alias="status"),
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> List[ChallanResponse]:
    challans = unwrap_result(service.list_for_student(student_id, status_filter))
    return [ChallanResponse.model_validate(c) for c in challans]


# ------------------------------------------------------------------ #
# Bulk actions
# ------------------------------------------------------------------ #
@router.post("/bulk-edit", response_model=BulkActionResult)
def bulk_edit_challans(
    payload: BulkEditRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> BulkActionResult:
    return unwrap_result(service.bulk_edit(payload, actor_id=actor_id))


@router.post("/bulk-pay", response_model=BulkActionResult)
def bulk_pay_challans(
    payload: BulkPayRequest,
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> BulkActionResult:
    return unwrap_result(service.mark_paid_many(payload.challan_ids, payload.paid_date))


# ------------------------------------------------------------------ #
# Single challan
# ------------------------------------------------------------------ #
@router.get("/{challan_id}", response_model=ChallanResponse)
def get_challan(
    challan_id: UUID,
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> ChallanResponse:
    return ChallanResponse.model_validate(unwrap_result(service.get(challan_id)))


@router.patch("/{challan_id}", response_model=ChallanResponse)
def edit_challan(
    challan_id: UUID,
    payload: ChallanUpdate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> ChallanResponse:
    challan = unwrap_result(service.edit(challan_id, payload, actor_id=actor_id))
    return ChallanResponse.model_validate(challan)


@router.post("/{challan_id}/cancel", response_model=ChallanResponse)
def cancel_challan(
    challan_id: UUID,
    payload: Optional[ChallanCancelRequest] = None,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> ChallanResponse:
    payload = payload or ChallanCancelRequest()
    challan = unwrap_result(service.cancel(
        challan_id,
        expected_version=payload.expected_version,
        actor_id=actor_id,
        reason=payload.reason,
    ))
    return ChallanResponse.model_validate(challan)


@router.post("/{challan_id}/pay", response_model=ChallanResponse)
def pay_challan(
    challan_id: UUID,
    payload: Optional[ChallanPayRequest] = None,
    service: ChallanLifecycleService = Depends(get_lifecycle_service),
) -> ChallanResponse:
    paid_date = payload.paid_date if payload else None
    challan = unwrap_result(service.mark_paid(challan_id, paid_date))
    return ChallanResponse.model_validate(challan)
