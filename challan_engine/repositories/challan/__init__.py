"""
Challan repositories package.
"""

from challan_engine.repositories.challan.challan_repository import ChallanRepository
from challan_engine.repositories.challan.challan_sequence_repository import (
    ChallanSequenceRepository,
)

__all__ = [
    "ChallanRepository",
    "ChallanSequenceRepository",
]
