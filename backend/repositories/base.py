"""
Base repository class providing common database operations.

Repositories never commit on their own except through `save`; services decide
where a unit of work ends so multi-row changes (vote + tally + reputation,
moderation audit + effect + report resolution) share one transaction.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Query, Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


def paginate(query: Query[Any], page: int, limit: int) -> tuple[list[Any], int]:
    """
    Apply page/limit to a query.

    Args:
        query: Ordered query to slice
        page: 1-based page number
        limit: Page size

    Returns:
        Tuple of (items on the page, total matching rows)
    """
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


class BaseRepository(Generic[T]):
    """
    Common data access for one SQLAlchemy model.

    Type parameter T should be a SQLAlchemy model class.
    """

    def __init__(self, model: type[T], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> T | None:
        return self.db.get(self.model, id)

    def count(self) -> int:
        return self.db.query(self.model).count()

    def add(self, entity: T) -> T:
        """
        Stage a new entity and flush so its primary key is assigned.

        Args:
            entity: Entity to add

        Returns:
            The same entity, now with an id
        """
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: T) -> None:
        """Stage deletion of an entity (ORM cascades apply)."""
        self.db.delete(entity)
        self.db.flush()

    def save(self, entity: T) -> T:
        """
        Commit the current unit of work and reload the entity.

        Args:
            entity: Entity to persist and refresh

        Returns:
            The refreshed entity
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def commit(self) -> None:
        self.db.commit()

    def flush(self) -> None:
        self.db.flush()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        self.db.refresh(entity)
