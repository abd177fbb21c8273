"""
Base Repository Pattern for the garage booking engine

Generic data access for one model class. Repositories flush so generated
ids and constraint errors surface early, but they never commit: the
service layer owns the transaction boundary and a failed lifecycle
operation rolls back every row it touched.

Every SQLAlchemy failure is logged and re-raised as RepositoryException.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Attributes:
        db: SQLAlchemy session owned by the calling service
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.logger.error(f"Integrity error while trying to {action}: {str(e)}")
            raise RepositoryException(f"Integrity constraint violated: {str(e)}") from e
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to {action}: {str(e)}")
            raise RepositoryException(f"Failed to {action}: {str(e)}") from e

    def get_by_id(self, id: str) -> Optional[T]:
        with self._guard(f"load {self.model.__name__} {id}"):
            return self.db.get(self.model, id)

    def find_one_by(self, **criteria: Any) -> Optional[T]:
        """First row matching every ``column=value`` pair."""
        with self._guard(f"find {self.model.__name__}"):
            return self.db.query(self.model).filter_by(**criteria).first()

    def create(self, **fields: Any) -> T:
        """Add a new row and flush it so its id is available."""
        with self._guard(f"create {self.model.__name__}"):
            entity = self.model(**fields)
            self.db.add(entity)
            self.db.flush()
            return entity

    def update(self, entity: T, **fields: Any) -> T:
        """Set known attributes on an already loaded row and flush."""
        with self._guard(f"update {self.model.__name__}"):
            for key, value in fields.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity

    def delete(self, entity: T) -> None:
        with self._guard(f"delete {self.model.__name__}"):
            self.db.delete(entity)
            self.db.flush()

    def flush(self) -> None:
        with self._guard("flush pending changes"):
            self.db.flush()

    # Query helpers for subclasses

    def _execute_query(self, query: Query) -> List[T]:
        with self._guard(f"query {self.model.__name__}"):
            return query.all()

    def _execute_first(self, query: Query) -> Optional[Any]:
        with self._guard(f"query {self.model.__name__}"):
            return query.first()
