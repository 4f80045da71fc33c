"""
Student models package.
"""

from challan_engine.models.student.school_class import SchoolClass
from challan_engine.models.student.student import Student

__all__ = [
    "SchoolClass",
    "Student",
]
