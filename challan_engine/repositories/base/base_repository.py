"""
Base repository with standardized CRUD operations and error handling.

Repositories flush but never commit: the calling service owns the
transaction boundary.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from challan_engine.models.base import BaseModel
from challan_engine.core.logging import get_logger
from challan_engine.core.exceptions import (
    NotFoundError,
    PersistenceError,
    handle_database_exception,
)

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides CRUD operations and error translation for all
    domain repositories.
    """

    resource_name: str = "Resource"

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add a new entity and flush it so database defaults and
        constraints are applied immediately.

        Raises:
            PersistenceError: If the insert fails
        """
        try:
            self.db.add(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            raise handle_database_exception(e, operation=f"create {self.model.__name__}") from e

        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, id: UUID) -> Optional[ModelType]:
        """
        Find entity by ID.

        Returns:
            Entity or None
        """
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Find by ID failed: {e}", table=self.model.__tablename__) from e

    def get_by_id(self, id: UUID) -> ModelType:
        """
        Get entity by ID or raise exception.

        Raises:
            NotFoundError: If entity not found
        """
        entity = self.find_by_id(id)
        if entity is None:
            raise NotFoundError(self.resource_name, id)
        return entity

    # ==================== Update Operations ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        """
        Apply field changes to a loaded entity and flush.

        Raises:
            PersistenceError / ConcurrencyError: If the update fails
        """
        for key, value in data.items():
            if not hasattr(entity, key):
                raise AttributeError(f"{self.model.__name__} has no field '{key}'")
            setattr(entity, key, value)

        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise handle_database_exception(e, operation=f"update {self.model.__name__}") from e

        logger.debug(f"Updated {self.model.__name__} with id: {entity.id}")
        return entity
