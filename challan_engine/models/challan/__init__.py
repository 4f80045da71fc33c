"""
Challan Models Package
"""

from challan_engine.models.challan.challan import (
    ALLOWED_TRANSITIONS,
    UNPAID_STATUSES,
    Challan,
    compute_total_amount,
)
from challan_engine.models.challan.challan_sequence import ChallanSequence

__all__ = [
    "ALLOWED_TRANSITIONS",
    "UNPAID_STATUSES",
    "Challan",
    "ChallanSequence",
    "compute_total_amount",
]
