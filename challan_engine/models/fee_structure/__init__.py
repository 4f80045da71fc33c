"""
Fee Structure Models Package
"""

from challan_engine.models.fee_structure.fee_structure import FeeStructure

__all__ = [
    "FeeStructure",
]
