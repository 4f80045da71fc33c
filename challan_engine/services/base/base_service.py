"""
Base service class providing common functionality for all services.
"""

from typing import Optional, Dict, Any, Type
from abc import ABC
from contextlib import contextmanager

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from challan_engine.core.logging import get_logger
from challan_engine.core.exceptions import (
    BaseAppException,
    ConcurrencyError,
    DuplicateBillingError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    handle_database_exception,
)
from challan_engine.services.base.service_result import (
    ServiceResult,
    ServiceError,
    ErrorCode,
    ErrorSeverity,
)


# Expected business failures: reported to the caller, logged as warnings
_EXCEPTION_MAPPING: Dict[Type[Exception], ErrorCode] = {
    NotFoundError: ErrorCode.NOT_FOUND,
    DuplicateBillingError: ErrorCode.DUPLICATE_BILLING,
    InvalidStateError: ErrorCode.INVALID_STATE,
    ValidationError: ErrorCode.VALIDATION_ERROR,
    ConcurrencyError: ErrorCode.CONFLICT,
    PersistenceError: ErrorCode.PERSISTENCE_ERROR,
}


class BaseService(ABC):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Consistent error handling via ServiceResult
    - Transaction management utilities
    """

    def __init__(self, db_session: Session):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
        """
        self.db: Session = db_session
        self._logger = get_logger(f"challan_engine.services.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the entity involved (ID, name, etc.)
            additional_context: Extra context for logging/debugging

        Returns:
            ServiceResult with failure status and error details
        """
        if isinstance(exception, SQLAlchemyError):
            exception = handle_database_exception(exception, operation=operation)

        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        error_code = self._map_exception_to_error_code(exception)

        if error_code in (ErrorCode.PERSISTENCE_ERROR, ErrorCode.INTERNAL_ERROR):
            severity = ErrorSeverity.ERROR if error_code == ErrorCode.PERSISTENCE_ERROR else ErrorSeverity.CRITICAL
            self._logger.error(
                f"Error during {operation}: {exception}",
                exc_info=True,
                extra=context,
            )
        else:
            severity = ErrorSeverity.WARNING
            self._logger.warning(
                f"Rejected {operation}: {exception}",
                extra=context,
            )

        if isinstance(exception, BaseAppException):
            message = exception.message
            details = dict(exception.details)
        else:
            message = f"Failed to {operation}"
            details = {"error": str(exception)}
        details["entity_ref"] = context["entity_ref"]

        return ServiceResult.failure(
            ServiceError(
                code=error_code,
                message=message,
                details=details,
                severity=severity,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """
        Map exception types to appropriate error codes.

        Args:
            exception: The exception to map

        Returns:
            Appropriate ErrorCode for the exception
        """
        for exc_type, error_code in _EXCEPTION_MAPPING.items():
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for database transactions with automatic rollback.

        Args:
            auto_commit: Whether to commit automatically on success

        Yields:
            The database session

        Example:
            with self.transaction():
                self.challans.insert(challan)
                # automatic commit on success, rollback on exception
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except Exception as e:
            self._rollback()
            if not isinstance(e, BaseAppException):
                self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise

    def _commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()
        self._logger.debug("Transaction committed successfully")

    def _rollback(self) -> None:
        """Rollback the current transaction, logging rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            # The original error is re-raised by the caller
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log service operation with standardized format.

        Args:
            operation: Description of the operation
            entity_ref: Reference to the entity involved
            extra: Additional context to log
        """
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)

        self._logger.info(f"Operation: {operation}", extra=context)
