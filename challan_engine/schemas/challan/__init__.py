"""
Challan schemas package.
"""

from challan_engine.schemas.challan.challan_base import (
    BILLING_PERIOD_PATTERN,
    ChallanResponse,
    ChallanUpdate,
    ChallanCancelRequest,
    ChallanPayRequest,
    BulkMarkPaidRequest,
    BulkMarkPaidResult,
    SweepOverdueResult,
    BulkEditRequest,
    BulkPayRequest,
    BulkActionResult,
)
from challan_engine.schemas.challan.challan_generation import (
    BatchGenerateRequest,
    BatchPreviewRequest,
    BatchResult,
    PreviewResult,
    FirstChallanRequest,
    IndividualChallanRequest,
)
from challan_engine.schemas.challan.collection_report import (
    UnpaidStudentEntry,
    UnpaidStudentsReport,
    ReminderEntry,
    ReminderStats,
    PaymentRemindersReport,
    UnbilledStudentEntry,
    UnbilledStudentsReport,
)

__all__ = [
    "BILLING_PERIOD_PATTERN",
    "ChallanResponse",
    "ChallanUpdate",
    "ChallanCancelRequest",
    "ChallanPayRequest",
    "BulkMarkPaidRequest",
    "BulkMarkPaidResult",
    "SweepOverdueResult",
    "BulkEditRequest",
    "BulkPayRequest",
    "BulkActionResult",
    "BatchGenerateRequest",
    "BatchPreviewRequest",
    "BatchResult",
    "PreviewResult",
    "FirstChallanRequest",
    "IndividualChallanRequest",
    "UnpaidStudentEntry",
    "UnpaidStudentsReport",
    "ReminderEntry",
    "ReminderStats",
    "PaymentRemindersReport",
    "UnbilledStudentEntry",
    "UnbilledStudentsReport",
]
