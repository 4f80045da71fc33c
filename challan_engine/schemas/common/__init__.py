"""
Common schema building blocks.
"""

from challan_engine.schemas.common.base import (
    BaseSchema,
    TimestampMixin,
    UUIDMixin,
    BaseDBSchema,
    BaseCreateSchema,
    BaseUpdateSchema,
    BaseResponseSchema,
    quantize_money,
)

__all__ = [
    "BaseSchema",
    "TimestampMixin",
    "UUIDMixin",
    "BaseDBSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "BaseResponseSchema",
    "quantize_money",
]
