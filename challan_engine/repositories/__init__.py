"""
Repository layer: one repository per aggregate, all flushing inside
the transaction owned by the calling service.
"""

from challan_engine.repositories.base import BaseRepository
from challan_engine.repositories.student import StudentRepository
from challan_engine.repositories.fee_structure import FeeStructureRepository
from challan_engine.repositories.challan import ChallanRepository, ChallanSequenceRepository

__all__ = [
    "BaseRepository",
    "StudentRepository",
    "FeeStructureRepository",
    "ChallanRepository",
    "ChallanSequenceRepository",
]
