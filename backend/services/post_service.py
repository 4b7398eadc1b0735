"""
Post service for business logic.
"""

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from authentication.permissions import ensure_owner_or_roles, is_staff
from helpers.pagination import PageParams
from helpers.sanitization import sanitize_html, sanitize_plain_text
from helpers.slug import unique_slug
from models.exceptions import PostNotFoundException, ValidationException
from repositories.base import paginate
from repositories.database import atomic
from repositories.db_models import Role
from repositories.post_repository import PostRepository
from repositories.tag_repository import TagRepository

POST_SORTS = ("recent", "votes", "unanswered")
TITLE_MIN_LENGTH = 10


class PostService:
    """Service for post-related business logic."""

    @staticmethod
    def _resolve_tags(db: Session, tag_ids: list[int]) -> list[db_models.Tag]:
        unique_ids = list(dict.fromkeys(tag_ids))
        if not 1 <= len(unique_ids) <= 5:
            raise ValidationException("A post needs between 1 and 5 tags")
        tags = TagRepository(db).get_many(unique_ids)
        if len(tags) != len(unique_ids):
            missing = sorted(set(unique_ids) - {tag.id for tag in tags})
            raise ValidationException(f"Unknown tag IDs: {missing}")
        return tags

    @staticmethod
    def _clean_title(title: str) -> str:
        clean_title = sanitize_plain_text(title)
        if len(clean_title) < TITLE_MIN_LENGTH:
            raise ValidationException(
                f"Title must be at least {TITLE_MIN_LENGTH} characters of plain text"
            )
        return clean_title

    @staticmethod
    def create_post(
        db: Session,
        author_id: int,
        title: str,
        content: str,
        tag_ids: list[int],
    ) -> db_models.Post:
        """
        Create a post with a unique slug derived from its title.

        Args:
            db: Database session
            author_id: Author user ID
            title: Post title (stripped to plain text)
            content: Post body (sanitized HTML)
            tag_ids: 1 to 5 existing tag IDs

        Returns:
            Created post

        Raises:
            ValidationException: If the title is too short once stripped, or
                the tags are missing or out of range
        """
        post_repo = PostRepository(db)
        tags = PostService._resolve_tags(db, tag_ids)
        clean_title = PostService._clean_title(title)

        with atomic(db):
            post = post_repo.add(
                db_models.Post(
                    title=clean_title,
                    slug=unique_slug(clean_title, post_repo.slug_exists),
                    content=sanitize_html(content),
                    author_id=author_id,
                )
            )
            post_repo.set_tags(post, tags)

        db.refresh(post)
        logger.info(f"Post {post.id} ({post.slug}) created by user {author_id}")
        return post

    @staticmethod
    def list_posts(
        db: Session,
        params: PageParams,
        sort: str = "recent",
        tag: str | None = None,
        author: str | None = None,
    ) -> tuple[list[db_models.Post], int]:
        """
        Public post listing; hidden posts are never included.

        Raises:
            ValidationException: If the sort key is unknown
        """
        if sort not in POST_SORTS:
            raise ValidationException(
                f"Invalid sort '{sort}', expected one of {', '.join(POST_SORTS)}"
            )
        query = PostRepository(db).list_query(
            sort=sort, tag_slug=tag, author_username=author
        )
        return paginate(query, params.page, params.limit)

    @staticmethod
    def get_post_by_slug(
        db: Session, slug: str, viewer: db_models.User | None = None
    ) -> db_models.Post:
        """
        Fetch a post for display and count the view.

        Args:
            db: Database session
            slug: Post slug
            viewer: Current user; only staff can open hidden posts

        Returns:
            The post

        Raises:
            PostNotFoundException: If missing or hidden from the viewer
        """
        post_repo = PostRepository(db)
        post = post_repo.get_by_slug(slug)
        if post is None or (post.is_hidden and not (viewer and is_staff(viewer))):
            raise PostNotFoundException(f"Post '{slug}' not found")

        post_repo.increment_views(post.id)
        post_repo.commit()
        post_repo.refresh(post)
        return post

    @staticmethod
    def get_post_or_404(db: Session, post_id: int) -> db_models.Post:
        post = PostRepository(db).get_by_id(post_id)
        if post is None:
            raise PostNotFoundException(f"Post with ID {post_id} not found")
        return post

    @staticmethod
    def update_post(
        db: Session,
        post_id: int,
        user: db_models.User,
        title: str | None = None,
        content: str | None = None,
        tag_ids: list[int] | None = None,
    ) -> db_models.Post:
        """
        Edit a post. The slug is kept stable across title changes.

        Raises:
            PostNotFoundException: If the post does not exist
            PermissionDeniedException: If the user is neither author nor ADMIN
            ValidationException: If the title or new tags are invalid
        """
        post = PostService.get_post_or_404(db, post_id)
        ensure_owner_or_roles(
            user, post.author_id, {Role.ADMIN}, "You can only edit your own posts"
        )

        tags = PostService._resolve_tags(db, tag_ids) if tag_ids is not None else None
        clean_title = PostService._clean_title(title) if title is not None else None

        with atomic(db):
            if clean_title is not None:
                post.title = clean_title
            if content is not None:
                post.content = sanitize_html(content)  # type: ignore[assignment]
            if tags is not None:
                PostRepository(db).set_tags(post, tags)

        db.refresh(post)
        return post

    @staticmethod
    def delete_post(db: Session, post_id: int, user: db_models.User) -> None:
        """
        Delete a post with its comments, votes and reports.

        Raises:
            PostNotFoundException: If the post does not exist
            PermissionDeniedException: If the user is neither author nor ADMIN
        """
        post = PostService.get_post_or_404(db, post_id)
        ensure_owner_or_roles(
            user, post.author_id, {Role.ADMIN}, "You can only delete your own posts"
        )
        with atomic(db):
            PostService.remove_post(db, post)
        logger.info(f"Post {post_id} deleted by user {user.id}")

    @staticmethod
    def remove_post(db: Session, post: db_models.Post) -> None:
        """Stage deletion of a post and release its tag counts."""
        post_repo = PostRepository(db)
        post_repo.set_tags(post, [])
        post_repo.delete(post)
