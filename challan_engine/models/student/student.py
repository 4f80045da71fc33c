"""
Student core model.

The billing engine reads a student's identity and fee snapshot;
everything else about a student belongs to the student directory.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum,
    ForeignKey,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from challan_engine.models.base.base_model import BaseModel
from challan_engine.models.base.mixins import TimestampMixin
from challan_engine.models.base.enums import StudentStatus, enum_values

if TYPE_CHECKING:
    from challan_engine.models.student.school_class import SchoolClass
    from challan_engine.models.challan.challan import Challan


class Student(BaseModel, TimestampMixin):
    """
    Core student model.

    Fee fields:
        - original_*: class fee structure snapshotted at admission. When
          present the snapshot is authoritative for billing.
        - use_custom_fees / custom_tuition_fee: per-student tuition override.
        - fee_discount: flat standing discount applied to every challan.
    """

    __tablename__ = "students"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    roll_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("school_classes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    section: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    status: Mapped[StudentStatus] = mapped_column(
        Enum(
            StudentStatus,
            name="student_status_enum",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=StudentStatus.ACTIVE,
        index=True,
    )

    # Fee snapshot taken from the class structure at admission
    original_tuition_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    original_admission_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    original_exam_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    original_other_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    use_custom_fees: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custom_tuition_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    fee_discount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    school_class: Mapped["SchoolClass"] = relationship(
        "SchoolClass",
        back_populates="students",
        lazy="select",
    )
    challans: Mapped[list["Challan"]] = relationship(
        "Challan",
        back_populates="student",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint("fee_discount >= 0", name="ck_student_fee_discount_positive"),
        CheckConstraint(
            "custom_tuition_fee IS NULL OR custom_tuition_fee >= 0",
            name="ck_student_custom_tuition_positive",
        ),
    )

    @property
    def has_fee_snapshot(self) -> bool:
        """Whether fees were snapshotted at admission"""
        return self.original_tuition_fee is not None

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name='{self.name}', status={self.status})>"
