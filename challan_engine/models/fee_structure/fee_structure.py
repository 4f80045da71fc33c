"""
Fee Structure Model

Per-class fee catalog entries. Entries are versioned and immutable
once written: a new schedule is a new version so historical challans
stay reproducible.
"""

from datetime import date as Date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date as SQLDate,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from challan_engine.models.base.base_model import BaseModel
from challan_engine.models.base.enums import FeeCategory, FeeFrequency, enum_values
from challan_engine.models.base.mixins import AuditMixin, TimestampMixin

if TYPE_CHECKING:
    from challan_engine.models.student.school_class import SchoolClass


class FeeStructure(BaseModel, TimestampMixin, AuditMixin):
    """
    Fee Structure Model

    One amount for one category of one class, effective from a date.
    The active entry for (class, category) is the highest version whose
    effective date has passed.
    """

    __tablename__ = "fee_structures"

    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("school_classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category: Mapped[FeeCategory] = mapped_column(
        Enum(
            FeeCategory,
            name="fee_category_enum",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        index=True,
    )
    frequency: Mapped[FeeFrequency] = mapped_column(
        Enum(
            FeeFrequency,
            name="fee_frequency_enum",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=FeeFrequency.MONTHLY,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    effective_from: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    school_class: Mapped["SchoolClass"] = relationship(
        "SchoolClass",
        back_populates="fee_structures",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_fee_structure_amount_positive"),
        CheckConstraint("version >= 1", name="ck_fee_structure_version_positive"),
        UniqueConstraint(
            "class_id", "category", "version",
            name="uq_fee_structure_class_category_version",
        ),
        Index(
            "ix_fee_structure_lookup",
            "class_id", "category", "effective_from",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<FeeStructure(class_id={self.class_id}, category={self.category}, "
            f"amount={self.amount}, version={self.version})>"
        )
