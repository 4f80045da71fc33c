"""
Database enums for the billing engine.

Values are persisted (not member names) so raw SQL predicates such as
the partial unique index on challans can refer to them.
"""

import enum
from typing import List, Type


def enum_values(enum_cls: Type[enum.Enum]) -> List[str]:
    """values_callable for SQLAlchemy Enum columns"""
    return [member.value for member in enum_cls]


class StudentStatus(str, enum.Enum):
    """Student lifecycle status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    PASSED = "passed"
    LEFT = "left"


class ChallanStatus(str, enum.Enum):
    """Challan lifecycle status."""
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class ChallanType(str, enum.Enum):
    """How a challan came to exist."""
    FIRST_ADMISSION = "first_admission"
    REGULAR = "regular"


class FeeFrequency(str, enum.Enum):
    """Billing frequency of a fee structure entry."""
    MONTHLY = "monthly"
    ONE_TIME = "one_time"


class FeeCategory(str, enum.Enum):
    """
    Closed set of fee categories.

    EXAM and OTHER are pools: a selection of EXAM bills both exam halves,
    a selection of OTHER bills sports and both labs.
    """
    TUITION = "tuition"
    ADMISSION = "admission"
    EXAM = "exam"
    MID_EXAM = "mid_exam"
    FINAL_EXAM = "final_exam"
    SPORTS = "sports"
    SCIENCE_LAB = "science_lab"
    COMPUTER_LAB = "computer_lab"
    OTHER = "other"
