"""
Repository for post operations.
"""

from datetime import datetime

from sqlalchemy.orm import Query, Session, joinedload, selectinload

from repositories.base import BaseRepository
from repositories.db_models import Post, PostTag, Tag, User


class PostRepository(BaseRepository[Post]):
    """Repository for post data access."""

    def __init__(self, db: Session):
        super().__init__(Post, db)

    def get_by_slug(self, slug: str) -> Post | None:
        return (
            self.db.query(Post)
            .options(joinedload(Post.author), selectinload(Post.tags))
            .filter(Post.slug == slug)
            .first()
        )

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(Post.id).filter(Post.slug == slug).first() is not None

    def list_query(
        self,
        sort: str = "recent",
        tag_slug: str | None = None,
        author_username: str | None = None,
        include_hidden: bool = False,
    ) -> Query[Post]:
        """
        Build the public post listing query.

        Args:
            sort: "recent" (newest first), "votes" (highest tally first) or
                "unanswered" (no comments yet, newest first)
            tag_slug: Only posts carrying this tag
            author_username: Only posts by this author
            include_hidden: Include moderator-hidden posts

        Returns:
            Ordered query
        """
        query = self.db.query(Post).options(
            joinedload(Post.author), selectinload(Post.tags)
        )

        if not include_hidden:
            query = query.filter(Post.is_hidden.is_(False))

        if tag_slug:
            query = query.filter(Post.post_tags.any(PostTag.tag.has(Tag.slug == tag_slug)))

        if author_username:
            query = query.join(User, Post.author_id == User.id).filter(
                User.username == author_username
            )

        if sort == "votes":
            return query.order_by(Post.votes.desc(), Post.created_at.desc())
        if sort == "unanswered":
            query = query.filter(Post.comment_count == 0)
        return query.order_by(Post.created_at.desc(), Post.id.desc())

    def set_tags(self, post: Post, tags: list[Tag]) -> None:
        """
        Replace a post's tags and keep Tag.post_count in step.

        Args:
            post: Post to update
            tags: New tag list
        """
        old_ids = {link.tag_id for link in post.post_tags}
        new_ids = {tag.id for tag in tags}

        for link in list(post.post_tags):
            if link.tag_id not in new_ids:
                link.tag.post_count = max(0, link.tag.post_count - 1)
                post.post_tags.remove(link)

        for tag in tags:
            if tag.id not in old_ids:
                tag.post_count += 1
                post.post_tags.append(PostTag(tag=tag))

        self.db.flush()
        self.db.expire(post, ["tags"])

    def count_created_since(self, since: datetime) -> int:
        return self.db.query(Post).filter(Post.created_at >= since).count()

    def count_visible(self) -> int:
        return self.db.query(Post).filter(Post.is_hidden.is_(False)).count()

    def increment_views(self, post_id: int) -> None:
        """Bump the view counter without touching updated_at."""
        self.db.query(Post).filter(Post.id == post_id).update(
            {Post.views: Post.views + 1, Post.updated_at: Post.updated_at},
            synchronize_session=False,
        )

    def get_many_with_author(self, post_ids: list[int]) -> list[Post]:
        if not post_ids:
            return []
        return (
            self.db.query(Post)
            .options(joinedload(Post.author))
            .filter(Post.id.in_(post_ids))
            .all()
        )

    def count_by_author(self, author_id: int) -> int:
        return (
            self.db.query(Post)
            .filter(Post.author_id == author_id, Post.is_hidden.is_(False))
            .count()
        )
