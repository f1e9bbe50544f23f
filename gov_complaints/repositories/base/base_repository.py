"""
Base repository with standardized CRUD operations and error handling.

Repositories never commit. They add, flush and query inside whatever
transaction the calling service has open, so a service operation commits
or rolls back all of its writes together.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.exc import StaleDataError

from gov_complaints.core.exceptions import (
    ConcurrencyConflictError,
    ErrorCode,
    InfrastructureError,
    ResourceNotFoundError,
)
from gov_complaints.core.logging import get_logger
from gov_complaints.models.base.base_model import BaseModel
from gov_complaints.models.base.mixins import SoftDeleteMixin

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides create/read/update/delete helpers and soft-delete aware
    queries for all domain repositories.
    """

    def __init__(self, model: Type[ModelType], session: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Database session
        """
        self.model = model
        self.session = session
        self._is_soft_delete = issubclass(model, SoftDeleteMixin)

    # ==================== Query helpers ====================

    def _query(self, include_deleted: bool = False) -> Query:
        query = self.session.query(self.model)
        if self._is_soft_delete and not include_deleted:
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def flush(self) -> None:
        """
        Flush pending changes, translating store failures.

        Raises:
            ConcurrencyConflictError: A versioned UPDATE matched no row
            InfrastructureError: Any other store failure
        """
        try:
            self.session.flush()
        except StaleDataError as e:
            logger.warning(f"Stale {self.model.__name__} write rejected: {e}")
            raise ConcurrencyConflictError() from e
        except IntegrityError as e:
            logger.error(f"Integrity error on {self.model.__name__}: {e}")
            raise InfrastructureError(f"{self.model.__name__} violates a store constraint") from e
        except SQLAlchemyError as e:
            logger.error(f"Flush failed for {self.model.__name__}: {e}", exc_info=True)
            raise InfrastructureError(
                f"{self.model.__name__} could not be saved",
                ErrorCode.DATABASE_ERROR,
            ) from e

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add a new entity and flush so generated values are populated.

        Args:
            entity: Entity to create

        Returns:
            Created entity
        """
        self.session.add(entity)
        self.flush()
        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    def create_many(self, entities: List[ModelType]) -> List[ModelType]:
        """Add several entities in one flush."""
        if not entities:
            return []
        self.session.add_all(entities)
        self.flush()
        logger.debug(f"Created {len(entities)} {self.model.__name__} entities")
        return entities

    # ==================== Read Operations ====================

    def find_by_id(self, id: str, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Find entity by ID.

        Args:
            id: Entity ID
            include_deleted: Include soft-deleted entities

        Returns:
            Entity or None
        """
        try:
            return self._query(include_deleted).filter(self.model.id == id).first()
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Find by ID failed: {e}") from e

    def get_by_id(self, id: str, include_deleted: bool = False) -> ModelType:
        """
        Get entity by ID or raise exception.

        Raises:
            ResourceNotFoundError: If entity not found
        """
        entity = self.find_by_id(id, include_deleted)
        if entity is None:
            raise ResourceNotFoundError(self.model.__name__, id)
        return entity

    def find_all(self, skip: int = 0, limit: int = 100, include_deleted: bool = False) -> List[ModelType]:
        try:
            return self._query(include_deleted).offset(skip).limit(limit).all()
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Find all failed: {e}") from e

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        order_by: Optional[List[str]] = None,
        include_deleted: bool = False,
    ) -> List[ModelType]:
        """
        Find entities matching criteria.

        Args:
            criteria: Filter criteria as column/value pairs
            skip: Number of records to skip
            limit: Maximum number of records
            order_by: Fields to order by (prefix with - for desc)
            include_deleted: Include soft-deleted entities

        Returns:
            List of matching entities
        """
        try:
            query = self._query(include_deleted)

            for key, value in criteria.items():
                if hasattr(self.model, key):
                    column = getattr(self.model, key)
                    if isinstance(value, (list, tuple)):
                        query = query.filter(column.in_(value))
                    else:
                        query = query.filter(column == value)

            for field in order_by or []:
                if field.startswith('-'):
                    query = query.order_by(getattr(self.model, field[1:]).desc())
                else:
                    query = query.order_by(getattr(self.model, field))

            return query.offset(skip).limit(limit).all()

        except SQLAlchemyError as e:
            raise InfrastructureError(f"Find by criteria failed: {e}") from e

    def count(self, criteria: Optional[Dict[str, Any]] = None, include_deleted: bool = False) -> int:
        try:
            query = self._query(include_deleted)
            for key, value in (criteria or {}).items():
                query = query.filter(getattr(self.model, key) == value)
            return query.count()
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Count failed: {e}") from e

    # ==================== Update Operations ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        """
        Apply partial field updates and flush.

        Unknown keys are ignored. Callers own the surrounding transaction.
        """
        for key, value in data.items():
            if hasattr(entity, key):
                setattr(entity, key, value)

        self.flush()
        return entity

    # ==================== Delete Operations ====================

    def delete(self, entity: ModelType) -> None:
        """Hard delete entity."""
        self.session.delete(entity)
        self.flush()
        logger.debug(f"Deleted {self.model.__name__} with id: {entity.id}")
