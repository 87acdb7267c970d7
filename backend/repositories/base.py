"""
Base repositories providing common database operations.

BaseRepository wraps session CRUD. LifecycleRepository adds the behaviour
shared by soft-deletable moderation records: active-row filtering,
updated_at refresh, compare-and-set soft delete and translation of store
errors into domain exceptions.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generic, TypeVar

from loguru import logger
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.exc import StaleDataError

from models.exceptions import (
    ConcurrentModificationException,
    DomainException,
    StoreUnavailableException,
)
from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Type parameter T should be a SQLAlchemy model class.
    """

    def __init__(self, model: type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: str) -> T | None:
        """
        Get entity by ID, deleted or not.

        Args:
            id: Entity ID

        Returns:
            Entity if found, None otherwise
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def add(self, entity: T) -> None:
        """
        Add entity to session without committing.

        Args:
            entity: Entity to add
        """
        self.db.add(entity)

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        """
        Refresh entity from database.

        Args:
            entity: Entity to refresh
        """
        self.db.refresh(entity)


class LifecycleRepository(BaseRepository[T]):
    """
    Repository for records carrying created_at/updated_at/deleted_at.

    Subclasses name the domain exception raised when a write violates an
    active-row uniqueness index.
    """

    resource_name = "Record"

    def __init__(
        self,
        model: type[T],
        db: Session,
        duplicate_error: Callable[[], DomainException],
    ):
        super().__init__(model, db)
        self._duplicate_error = duplicate_error

    @contextmanager
    def store_errors(
        self,
        entity_id: str = "",
        integrity_error: Callable[[], DomainException] | None = None,
    ) -> Iterator[None]:
        """
        Translate SQLAlchemy failures raised inside the block.

        An IntegrityError becomes the repository's duplicate error unless the
        caller names another one; deletes cannot create duplicates.
        The session is rolled back before the domain exception propagates.
        """
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            logger.info(f"{self.resource_name} integrity violation: {exc.orig!r}")
            raise (integrity_error or self._duplicate_error)() from exc
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrentModificationException(
                self.resource_name, entity_id
            ) from exc
        except (OperationalError, PoolTimeoutError) as exc:
            self.db.rollback()
            logger.warning(f"{self.resource_name} store unavailable: {exc!r}")
            raise StoreUnavailableException() from exc

    def active_query(self) -> Query:
        """Query restricted to rows that are not soft-deleted."""
        return self.db.query(self.model).filter(self.model.deleted_at.is_(None))

    def get_active(self, id: str) -> T | None:
        """
        Get entity by ID if it is not soft-deleted.

        Args:
            id: Entity ID

        Returns:
            Entity if found and active, None otherwise
        """
        with self.store_errors(id):
            return self.active_query().filter(self.model.id == id).first()

    def get(self, id: str) -> T | None:
        """Get entity by ID including soft-deleted rows."""
        with self.store_errors(id):
            return self.get_by_id(id)

    def create(self, entity: T) -> T:
        """
        Insert a new entity and commit.

        Raises:
            The repository's duplicate error on an active-row uniqueness clash
        """
        now = datetime.now(timezone.utc)
        entity.created_at = now  # type: ignore[attr-defined]
        entity.updated_at = now  # type: ignore[attr-defined]
        with self.store_errors():
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def save(self, entity: T) -> T:
        """
        Refresh updated_at on a loaded entity and commit its changes.

        The version column turns a concurrent overwrite into
        ConcurrentModificationException.
        """
        entity_id = str(entity.id)  # type: ignore[attr-defined]
        entity.updated_at = datetime.now(timezone.utc)  # type: ignore[attr-defined]
        with self.store_errors(entity_id):
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def soft_delete(self, id: str) -> bool:
        """
        Mark an active row deleted with a compare-and-set UPDATE.

        Args:
            id: Entity ID

        Returns:
            True if this call deleted the row, False if it was absent or
            already deleted
        """
        now = datetime.now(timezone.utc)
        statement = (
            update(self.model)
            .where(self.model.id == id, self.model.deleted_at.is_(None))
            .values(
                deleted_at=now,
                updated_at=now,
                version=self.model.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        with self.store_errors(id):
            result = self.db.execute(statement)
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.commit()
        return True
