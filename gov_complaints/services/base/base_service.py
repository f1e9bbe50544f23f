"""
Base service class providing common functionality for all services.
"""

from contextlib import contextmanager
from typing import Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from gov_complaints.core.exceptions import BaseAppException, ConcurrencyConflictError, InfrastructureError
from gov_complaints.core.logging import get_logger
from gov_complaints.repositories.base.base_repository import BaseRepository

TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(Generic[TRepo]):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Transaction scope that commits, or rolls back and re-raises
    - Translation of store failures into application exceptions
    """

    def __init__(self, repository: TRepo, db_session: Session):
        """
        Initialize base service.

        Args:
            repository: Repository instance for data access
            db_session: SQLAlchemy database session
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Context manager for one atomic unit of work.

        Yields:
            The database session

        Example:
            with self.transaction():
                self.repository.update(complaint, {...})
                # commit on success, rollback on any exception
        """
        try:
            yield self.db
            self._commit()
        except BaseAppException:
            self._rollback()
            raise
        except StaleDataError as e:
            self._rollback()
            self._logger.warning(f"Concurrent modification detected: {e}")
            raise ConcurrencyConflictError() from e
        except SQLAlchemyError as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise InfrastructureError("Database operation failed") from e
        except Exception:
            self._rollback()
            raise

    def _commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()
        self._logger.debug("Transaction committed successfully")

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            # Log but don't raise - rollback errors should not mask original error
            self._logger.warning(f"Rollback failed: {e}")
