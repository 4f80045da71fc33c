"""
Base models package.

Declarative base, abstract model, mixins and enums shared by
every billing table.
"""

from challan_engine.models.base.base_model import Base, BaseModel
from challan_engine.models.base.mixins import AuditMixin, TimestampMixin, utcnow
from challan_engine.models.base.enums import (
    ChallanStatus,
    ChallanType,
    FeeCategory,
    FeeFrequency,
    StudentStatus,
    enum_values,
)

__all__ = [
    "Base",
    "BaseModel",
    "AuditMixin",
    "TimestampMixin",
    "utcnow",
    "ChallanStatus",
    "ChallanType",
    "FeeCategory",
    "FeeFrequency",
    "StudentStatus",
    "enum_values",
]
