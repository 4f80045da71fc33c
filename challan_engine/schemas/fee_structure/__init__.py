"""
Fee structure schemas package.
"""

from challan_engine.schemas.fee_structure.fee_base import (
    FeeStructureCreate,
    FeeStructureResponse,
)

__all__ = [
    "FeeStructureCreate",
    "FeeStructureResponse",
]
