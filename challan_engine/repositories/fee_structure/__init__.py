"""
Fee structure repositories package.
"""

from challan_engine.repositories.fee_structure.fee_structure_repository import (
    FeeStructureRepository,
)

__all__ = [
    "FeeStructureRepository",
]
