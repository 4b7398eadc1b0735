"""
Tag service for business logic.
"""

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.pagination import PageParams
from helpers.sanitization import sanitize_plain_text
from helpers.slug import slugify
from models.exceptions import ConflictException, TagNotFoundException, ValidationException
from repositories.base import paginate
from repositories.tag_repository import TagRepository

TAG_SORTS = ("popular", "alphabetical")


class TagService:
    """Service for tag-related business logic."""

    @staticmethod
    def list_tags(
        db: Session,
        params: PageParams,
        sort: str = "popular",
        search: str | None = None,
    ) -> tuple[list[db_models.Tag], int]:
        if sort not in TAG_SORTS:
            raise ValidationException(
                f"Invalid sort '{sort}', expected one of {', '.join(TAG_SORTS)}"
            )
        return paginate(
            TagRepository(db).list_query(sort=sort, search=search),
            params.page,
            params.limit,
        )

    @staticmethod
    def get_tag_by_slug(db: Session, slug: str) -> db_models.Tag:
        tag = TagRepository(db).get_by_slug(slug)
        if tag is None:
            raise TagNotFoundException(f"Tag '{slug}' not found")
        return tag

    @staticmethod
    def get_tag_or_404(db: Session, tag_id: int) -> db_models.Tag:
        tag = TagRepository(db).get_by_id(tag_id)
        if tag is None:
            raise TagNotFoundException(f"Tag with ID {tag_id} not found")
        return tag

    @staticmethod
    def _clean_name(db: Session, name: str, exclude_id: int | None = None) -> tuple[str, str]:
        clean = (sanitize_plain_text(name) or "").strip()
        slug = slugify(clean)
        if not slug:
            raise ValidationException("Tag name must contain letters or digits")

        repo = TagRepository(db)
        clash = repo.get_by_name(clean) or repo.get_by_slug(slug)
        if clash is not None and clash.id != exclude_id:
            raise ConflictException(f"Tag '{clean}' already exists")
        return clean, slug

    @staticmethod
    def create_tag(
        db: Session, name: str, description: str | None = None
    ) -> db_models.Tag:
        """
        Create a tag.

        Args:
            db: Database session
            name: Display name; the slug is derived from it
            description: Optional description

        Returns:
            Created tag

        Raises:
            ConflictException: If a tag with the same name or slug exists
        """
        clean, slug = TagService._clean_name(db, name)
        tag = db_models.Tag(
            name=clean,
            slug=slug,
            description=sanitize_plain_text(description),
        )
        tag = TagRepository(db).save(tag)
        logger.info(f"Tag '{tag.slug}' created")
        return tag

    @staticmethod
    def update_tag(
        db: Session,
        tag_id: int,
        name: str | None = None,
        description: str | None = None,
    ) -> db_models.Tag:
        """
        Rename or describe a tag.

        Raises:
            TagNotFoundException: If the tag does not exist
            ConflictException: If the new name clashes with another tag
        """
        tag = TagService.get_tag_or_404(db, tag_id)
        if name is not None:
            tag.name, tag.slug = TagService._clean_name(db, name, exclude_id=tag.id)
        if description is not None:
            tag.description = sanitize_plain_text(description)
        return TagRepository(db).save(tag)

    @staticmethod
    def delete_tag(db: Session, tag_id: int) -> None:
        """
        Delete an unused tag.

        Raises:
            TagNotFoundException: If the tag does not exist
            ValidationException: If posts still carry the tag
        """
        repo = TagRepository(db)
        tag = TagService.get_tag_or_404(db, tag_id)
        if tag.post_count > 0:
            raise ValidationException(
                f"Tag '{tag.name}' is used by {tag.post_count} post(s) and cannot be deleted"
            )
        repo.delete(tag)
        repo.commit()
        logger.info(f"Tag {tag_id} deleted")
