"""
School class model.

A class (grade) groups students into billing cohorts and owns
the versioned fee structures.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from challan_engine.models.base.base_model import BaseModel
from challan_engine.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from challan_engine.models.student.student import Student
    from challan_engine.models.fee_structure.fee_structure import FeeStructure


class SchoolClass(BaseModel, TimestampMixin):
    """School class (grade) model."""

    __tablename__ = "school_classes"

    class_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    students: Mapped[list["Student"]] = relationship(
        "Student",
        back_populates="school_class",
        lazy="select",
    )
    fee_structures: Mapped[list["FeeStructure"]] = relationship(
        "FeeStructure",
        back_populates="school_class",
        lazy="select",
        order_by="FeeStructure.version.desc()",
    )

    def __repr__(self) -> str:
        return f"<SchoolClass(id={self.id}, class_name='{self.class_name}')>"
