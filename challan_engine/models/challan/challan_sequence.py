"""
Challan Sequence Model

Storage-backed counter for challan numbers. One row per sequence name;
the counter is advanced with a single UPDATE so concurrent writers
serialize on the row.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from challan_engine.models.base.base_model import Base
from challan_engine.models.base.mixins import utcnow


class ChallanSequence(Base):
    """Named monotonically increasing counter."""

    __tablename__ = "challan_sequences"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<ChallanSequence(name='{self.name}', current_value={self.current_value})>"
