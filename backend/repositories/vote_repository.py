"""
Repository for vote operations.
"""

from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import Vote


class VoteRepository(BaseRepository[Vote]):
    """Repository for vote data access."""

    def __init__(self, db: Session):
        super().__init__(Vote, db)

    def get_for_target(
        self,
        user_id: int,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> Vote | None:
        """
        Get a user's vote on a post or a comment.

        Args:
            user_id: Voter ID
            post_id: Post ID (mutually exclusive with comment_id)
            comment_id: Comment ID

        Returns:
            The vote if present
        """
        query = self.db.query(Vote).filter(Vote.user_id == user_id)
        if post_id is not None:
            return query.filter(Vote.post_id == post_id).first()
        return query.filter(Vote.comment_id == comment_id).first()
