"""
Billing services.

Leaf-first: fee resolution, discount/carry-forward adjustment,
numbering and the duplicate guard feed the lifecycle service; the
generation and first challan services orchestrate them.
"""

from challan_engine.services.billing.fee_resolver_service import (
    FeeBreakdown,
    FeeResolverService,
    expand_categories,
    split_exam_fee,
    split_other_fee,
)
from challan_engine.services.billing.adjustment_service import Adjustment, AdjustmentService
from challan_engine.services.billing.challan_numbering_service import (
    ChallanNumberingService,
    format_challan_number,
    parse_sequence,
)
from challan_engine.services.billing.duplicate_guard import DuplicateGuard
from challan_engine.services.billing.challan_lifecycle_service import ChallanLifecycleService
from challan_engine.services.billing.challan_generation_service import ChallanGenerationService
from challan_engine.services.billing.first_challan_service import FirstChallanService
from challan_engine.services.billing.collection_report_service import CollectionReportService
from challan_engine.services.billing.fee_structure_service import FeeStructureService

__all__ = [
    "FeeBreakdown",
    "FeeResolverService",
    "expand_categories",
    "split_exam_fee",
    "split_other_fee",
    "Adjustment",
    "AdjustmentService",
    "ChallanNumberingService",
    "format_challan_number",
    "parse_sequence",
    "DuplicateGuard",
    "ChallanLifecycleService",
    "ChallanGenerationService",
    "FirstChallanService",
    "CollectionReportService",
    "FeeStructureService",
]
