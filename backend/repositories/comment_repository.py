"""
Repository for comment operations.
"""

from sqlalchemy.orm import Query, Session, joinedload

from repositories.base import BaseRepository
from repositories.db_models import Comment


class CommentRepository(BaseRepository[Comment]):
    """Repository for comment data access."""

    def __init__(self, db: Session):
        super().__init__(Comment, db)

    def get_with_post(self, comment_id: int) -> Comment | None:
        return (
            self.db.query(Comment)
            .options(joinedload(Comment.post), joinedload(Comment.author))
            .filter(Comment.id == comment_id)
            .first()
        )

    def get_accepted_for_post(self, post_id: int) -> Comment | None:
        return (
            self.db.query(Comment)
            .filter(Comment.post_id == post_id, Comment.is_accepted.is_(True))
            .first()
        )

    def top_level_query(self, post_id: int, include_hidden: bool) -> Query[Comment]:
        """
        Top-level comments of a post, accepted answer first then oldest first.

        Args:
            post_id: Post ID
            include_hidden: Include moderator-hidden comments

        Returns:
            Ordered query
        """
        query = (
            self.db.query(Comment)
            .options(joinedload(Comment.author))
            .filter(Comment.post_id == post_id, Comment.parent_id.is_(None))
        )
        if not include_hidden:
            query = query.filter(Comment.is_hidden.is_(False))
        return query.order_by(
            Comment.is_accepted.desc(), Comment.created_at.asc(), Comment.id.asc()
        )

    def get_replies(
        self, parent_ids: list[int], include_hidden: bool
    ) -> list[Comment]:
        """
        Replies to a set of comments, oldest first.

        Args:
            parent_ids: Parent comment IDs
            include_hidden: Include moderator-hidden replies

        Returns:
            List of replies
        """
        if not parent_ids:
            return []
        query = (
            self.db.query(Comment)
            .options(joinedload(Comment.author))
            .filter(Comment.parent_id.in_(parent_ids))
        )
        if not include_hidden:
            query = query.filter(Comment.is_hidden.is_(False))
        return query.order_by(Comment.created_at.asc(), Comment.id.asc()).all()

    def count_in_subtree(self, comment: Comment) -> int:
        """Number of comments removed when this one is deleted (itself included)."""
        total = 1
        frontier = [comment.id]
        while frontier:
            children = [
                row.id
                for row in self.db.query(Comment.id)
                .filter(Comment.parent_id.in_(frontier))
                .all()
            ]
            total += len(children)
            frontier = children
        return total

    def get_many_with_author(self, comment_ids: list[int]) -> list[Comment]:
        if not comment_ids:
            return []
        return (
            self.db.query(Comment)
            .options(joinedload(Comment.author))
            .filter(Comment.id.in_(comment_ids))
            .all()
        )

    def count_by_author(self, author_id: int, accepted_only: bool = False) -> int:
        query = self.db.query(Comment).filter(
            Comment.author_id == author_id, Comment.is_hidden.is_(False)
        )
        if accepted_only:
            query = query.filter(Comment.is_accepted.is_(True))
        return query.count()

    def admin_list_query(self) -> Query[Comment]:
        """Every comment, hidden ones included, newest first."""
        return (
            self.db.query(Comment)
            .options(joinedload(Comment.author), joinedload(Comment.post))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
