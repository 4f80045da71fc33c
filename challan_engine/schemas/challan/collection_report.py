"""
Collection report schemas.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from challan_engine.schemas.common.base import BaseSchema

__all__ = [
    "UnpaidStudentEntry",
    "UnpaidStudentsReport",
    "ReminderEntry",
    "ReminderStats",
    "PaymentRemindersReport",
    "UnbilledStudentEntry",
    "UnbilledStudentsReport",
]


class UnpaidStudentEntry(BaseSchema):
    student_id: UUID
    student_name: str
    roll_number: Optional[str] = None
    class_id: UUID
    challan_count: int
    total_unpaid: Decimal
    oldest_due_date: Date
    days_overdue: int = Field(..., description="Days past the oldest due date, 0 when not yet due")
    challan_numbers: List[str] = Field(default_factory=list)


class UnpaidStudentsReport(BaseSchema):
    as_of: Date
    students: List[UnpaidStudentEntry] = Field(default_factory=list)
    total_unpaid: Decimal
    critical_count: int = Field(..., description="Students overdue beyond the critical threshold")


class ReminderEntry(BaseSchema):
    challan_id: UUID
    challan_number: str
    student_id: UUID
    student_name: str
    month: str
    total_amount: Decimal
    due_date: Date
    days_overdue: int = 0
    days_until_due: int = 0


class ReminderStats(BaseSchema):
    overdue_count: int
    overdue_amount: Decimal
    due_soon_count: int
    due_soon_amount: Decimal
    swept_count: int = Field(..., description="Challans flipped to overdue by this run")


class PaymentRemindersReport(BaseSchema):
    as_of: Date
    overdue: List[ReminderEntry] = Field(default_factory=list)
    due_soon: List[ReminderEntry] = Field(default_factory=list)
    stats: ReminderStats


class UnbilledStudentEntry(BaseSchema):
    student_id: UUID
    student_name: str
    roll_number: Optional[str] = None
    class_id: UUID
    class_name: str


class UnbilledStudentsReport(BaseSchema):
    """Active students with no live challan for ``month``."""

    month: str
    students: List[UnbilledStudentEntry] = Field(default_factory=list)
    total_count: int
