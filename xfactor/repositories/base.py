"""
Base repository class for data access layer.

The repository pattern provides:
1. Separation of data access logic from business logic
2. Single place for query logic (easier to maintain)
3. Easier testing (can mock repositories)
4. Consistent interface for data operations, including the atomic
   find-or-create every ingestion step relies on

Example:
    class MatchRepository(BaseRepository[Match]):
        def find_by_ref(self, match_ref: str) -> Optional[Match]:
            return self.where_first(Match.match_ref == match_ref)
"""
import logging
import uuid
from abc import ABC
from typing import TypeVar, Generic, Type, Optional, List, Any, Dict, Tuple
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Base repository class providing common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def find_by_id(self, id: str) -> Optional[T]:
        """Find a single record by ID."""
        return self.db.query(self.model_type).filter(self.model_type.id == id).first()

    def create(self, **kwargs) -> T:
        """
        Create a new record.

        Returns:
            The created record (not yet committed to database)
        """
        kwargs.setdefault("id", str(uuid.uuid4()))
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        return instance

    def find_or_create(
        self,
        defaults: Optional[Dict[str, Any]] = None,
        **keys
    ) -> Tuple[T, bool]:
        """
        Find a record by its unique key, creating it if absent.

        Uses a check-then-insert inside a SAVEPOINT. If another writer
        inserted the same key first, the unique constraint raises
        IntegrityError, the savepoint is rolled back and the existing
        record is fetched instead.

        Args:
            defaults: Extra attributes used only when creating
            **keys: Unique-key attributes to look up by

        Returns:
            Tuple of (record, was_created)
        """
        instance = self.filter_by_first(**keys)
        if instance is not None:
            return instance, False

        params = dict(keys)
        params.update(defaults or {})
        params.setdefault("id", str(uuid.uuid4()))

        try:
            with self.db.begin_nested():
                instance = self.model_type(**params)
                self.db.add(instance)
        except IntegrityError:
            instance = self.filter_by_first(**keys)
            if instance is None:
                raise
            logger.debug(f"{self.model_type.__name__} {keys} created by another writer, using existing")
            return instance, False

        return instance, True

    def add_to_set(self, **keys) -> bool:
        """
        Add a link row to a set modelled by a unique constraint.

        Returns:
            True if the member was new
        """
        _, created = self.find_or_create(**keys)
        return created

    def delete(self, instance: T) -> None:
        """Delete a record."""
        self.db.delete(instance)

    def touch(self, instance: T) -> T:
        """Stamp updated_at on a record."""
        instance.updated_at = datetime.utcnow()
        return instance

    # ========================================================================
    # Query Builders
    # ========================================================================

    def query(self) -> Query:
        """Get a new query object for this model."""
        return self.db.query(self.model_type)

    def filter_by(self, **kwargs) -> List[T]:
        """Filter records by keyword arguments."""
        return self.db.query(self.model_type).filter_by(**kwargs).all()

    def filter_by_first(self, **kwargs) -> Optional[T]:
        """Filter records by keyword arguments and return first match."""
        return self.db.query(self.model_type).filter_by(**kwargs).first()

    def where(self, *criterion) -> List[T]:
        """Filter records using SQLAlchemy expressions."""
        return self.db.query(self.model_type).filter(*criterion).all()

    def where_first(self, *criterion) -> Optional[T]:
        """Filter records using SQLAlchemy expressions and return first match."""
        return self.db.query(self.model_type).filter(*criterion).first()

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.model_type.id))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0

    # ========================================================================
    # Save Operations
    # ========================================================================

    def save(self) -> None:
        """Commit pending changes to the database."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def rollback(self) -> None:
        """Rollback pending changes."""
        self.db.rollback()
