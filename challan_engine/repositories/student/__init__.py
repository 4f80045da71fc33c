"""
Student repositories package.
"""

from challan_engine.repositories.student.student_repository import StudentRepository

__all__ = [
    "StudentRepository",
]
