"""
Custom Exceptions for the Challan Billing Engine

This module defines custom exception classes used throughout the engine
for better error handling and debugging.
"""

from typing import Any, Dict, List, Optional
from enum import Enum

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    VALIDATION_ERROR = "VALIDATION_ERROR"

    DATABASE_ERROR = "DATABASE_ERROR"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    DUPLICATE_BILLING = "DUPLICATE_BILLING"
    INVALID_STATE = "INVALID_STATE"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the engine with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class ValidationError(BaseAppException):
    """Exception raised when input validation fails (negative amounts, bad periods)"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, 422)


class NotFoundError(BaseAppException):
    """Exception raised when a student, class or challan does not exist"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[Any] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id is not None:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": str(resource_id) if resource_id is not None else None,
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class DuplicateBillingError(BaseAppException):
    """Exception raised when a student already has a live challan for the period"""

    def __init__(
        self,
        student_id: Any,
        month: str,
        student_name: Optional[str] = None,
        existing_challan_id: Optional[Any] = None,
    ):
        who = student_name or str(student_id)
        details = {
            "student_id": str(student_id),
            "month": month,
            "existing_challan_id": str(existing_challan_id) if existing_challan_id else None,
        }
        super().__init__(
            f"Challan already exists for {who} in {month}",
            ErrorCode.DUPLICATE_BILLING,
            details,
            409,
        )


class InvalidStateError(BaseAppException):
    """Exception raised when a transition is not allowed from the current status"""

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        attempted_action: Optional[str] = None,
    ):
        details = {
            "current_status": current_status,
            "attempted_action": attempted_action,
        }
        super().__init__(message, ErrorCode.INVALID_STATE, details, 409)


class PersistenceError(BaseAppException):
    """Exception raised when the storage layer fails"""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        table: Optional[str] = None,
    ):
        details = {
            "operation": operation,
            "table": table
        }
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


class ConcurrencyError(BaseAppException):
    """Exception raised when a row was changed by another writer (optimistic lock)"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[Any] = None,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        details = {
            "resource_type": resource_type,
            "resource_id": str(resource_id) if resource_id is not None else None,
            "expected_version": expected_version,
            "actual_version": actual_version,
        }
        super().__init__(
            f"{resource_type} was modified by another operator; reload and retry",
            ErrorCode.CONCURRENT_MODIFICATION,
            details,
            409,
        )


# ========================================
# Utility Functions
# ========================================

def handle_database_exception(exc: Exception, operation: Optional[str] = None) -> BaseAppException:
    """Convert database exceptions to application exceptions"""
    if isinstance(exc, BaseAppException):
        return exc
    if isinstance(exc, StaleDataError):
        return ConcurrencyError()
    if isinstance(exc, IntegrityError):
        return PersistenceError(f"Constraint violation: {exc.orig}", operation=operation)
    if isinstance(exc, OperationalError):
        return PersistenceError(f"Database unavailable: {exc.orig}", operation=operation)
    if isinstance(exc, SQLAlchemyError):
        return PersistenceError(f"Database error: {exc}", operation=operation)
    return PersistenceError(str(exc), operation=operation)


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'ValidationError',
    'NotFoundError',
    'DuplicateBillingError',
    'InvalidStateError',
    'PersistenceError',
    'ConcurrencyError',
    'handle_database_exception',
]
