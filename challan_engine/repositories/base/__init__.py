"""
Base repositories package.

Provides the generic repository every aggregate repository extends.
"""

from challan_engine.repositories.base.base_repository import (
    BaseRepository,
    ModelType,
)

__all__ = [
    "BaseRepository",
    "ModelType",
]
