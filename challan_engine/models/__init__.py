"""
Models package.

Importing this package registers every billing table on ``Base.metadata``.
"""

from challan_engine.models.base import Base, BaseModel
from challan_engine.models.student import SchoolClass, Student
from challan_engine.models.fee_structure import FeeStructure
from challan_engine.models.challan import Challan, ChallanSequence

__all__ = [
    "Base",
    "BaseModel",
    "SchoolClass",
    "Student",
    "FeeStructure",
    "Challan",
    "ChallanSequence",
]
