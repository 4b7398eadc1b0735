"""
Repository for tag operations.
"""

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from repositories.base import BaseRepository
from repositories.db_models import Tag


class TagRepository(BaseRepository[Tag]):
    """Repository for tag data access."""

    def __init__(self, db: Session):
        super().__init__(Tag, db)

    def get_by_slug(self, slug: str) -> Tag | None:
        return self.db.query(Tag).filter(Tag.slug == slug).first()

    def get_by_name(self, name: str) -> Tag | None:
        """Case-insensitive lookup by display name."""
        return self.db.query(Tag).filter(func.lower(Tag.name) == name.lower()).first()

    def get_many(self, tag_ids: list[int]) -> list[Tag]:
        if not tag_ids:
            return []
        return self.db.query(Tag).filter(Tag.id.in_(tag_ids)).all()

    def list_query(self, sort: str = "popular", search: str | None = None) -> Query[Tag]:
        """
        Build the tag listing query.

        Args:
            sort: "popular" (most posts first) or "alphabetical"
            search: Case-insensitive substring of the name

        Returns:
            Ordered query
        """
        query = self.db.query(Tag)
        if search:
            query = query.filter(Tag.name.ilike(f"%{search}%"))
        if sort == "alphabetical":
            return query.order_by(Tag.name.asc())
        return query.order_by(Tag.post_count.desc(), Tag.name.asc())
