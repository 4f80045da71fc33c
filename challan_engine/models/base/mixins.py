"""
SQLAlchemy model mixins for reusable functionality.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """
    Mixin for automatic timestamp tracking.

    Provides created_at and updated_at fields set from the
    application clock so creation order is observable before flush.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
        comment="Record creation timestamp (UTC)"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        comment="Record last update timestamp (UTC)"
    )


class AuditMixin:
    """
    Mixin for audit trail fields.

    Tracks who created/updated records.
    """

    created_by: Mapped[Optional[UUID]] = mapped_column(
        nullable=True,
        index=True,
        comment="User who created the record"
    )
    updated_by: Mapped[Optional[UUID]] = mapped_column(
        nullable=True,
        comment="User who last updated the record"
    )
