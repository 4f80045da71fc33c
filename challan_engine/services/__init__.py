"""
Service layer root package.

Each subpackage implements billing use-cases on top of:

- SQLAlchemy models (challan_engine.models.*)
- Repositories (challan_engine.repositories.*)
- Pydantic schemas (challan_engine.schemas.*)
- Common service infrastructure (challan_engine.services.base.*)

Typical pattern for a service:

    class SomeService(BaseService):
        def __init__(self, db_session: Session) -> None:
            super().__init__(db_session)
            self.challans = ChallanRepository(db_session)

        def some_use_case(...) -> ServiceResult:
            try:
                with self.transaction():
                    ...
                return ServiceResult.success(...)
            except Exception as e:
                return self._handle_exception(e, "some use case")
"""

from challan_engine.services.base import BaseService, ServiceResult, ServiceError, ErrorCode

__all__ = [
    "BaseService",
    "ServiceResult",
    "ServiceError",
    "ErrorCode",
]
