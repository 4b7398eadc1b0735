"""
Vote service: the per (user, target) vote state machine.

States are no-vote, UP and DOWN. Resubmitting the current direction toggles
the vote off; switching direction updates the row in place. The vote row,
the target's tally and the author's reputation change in one transaction.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    CannotVoteOwnContentException,
    CommentNotFoundException,
    ConflictException,
    PostNotFoundException,
    ValidationException,
)
from repositories.comment_repository import CommentRepository
from repositories.database import atomic
from repositories.db_models import VoteType
from repositories.post_repository import PostRepository
from repositories.vote_repository import VoteRepository
from services.notification_service import NotificationService
from services.reputation_service import ReputationAction, ReputationService

TALLY_STEP = {VoteType.UP: 1, VoteType.DOWN: -1}

ACTIONS = {
    "post": {
        VoteType.UP: ReputationAction.UPVOTE_POST,
        VoteType.DOWN: ReputationAction.DOWNVOTE_POST,
    },
    "comment": {
        VoteType.UP: ReputationAction.UPVOTE_COMMENT,
        VoteType.DOWN: ReputationAction.DOWNVOTE_COMMENT,
    },
}


@dataclass(frozen=True)
class VoteOutcome:
    votes: int
    user_vote: VoteType | None
    reputation_delta: int


class VoteService:
    """Service for vote-related business logic."""

    @staticmethod
    def _load_target(
        db: Session, post_id: int | None, comment_id: int | None
    ) -> db_models.Post | db_models.Comment:
        if (post_id is None) == (comment_id is None):
            raise ValidationException("Provide exactly one of post_id or comment_id")

        if post_id is not None:
            post = PostRepository(db).get_by_id(post_id)
            if post is None:
                raise PostNotFoundException(f"Post with ID {post_id} not found")
            return post

        comment = CommentRepository(db).get_by_id(comment_id)  # type: ignore[arg-type]
        if comment is None:
            raise CommentNotFoundException(f"Comment with ID {comment_id} not found")
        return comment

    @staticmethod
    def vote(
        db: Session,
        user_id: int,
        value: VoteType,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> VoteOutcome:
        """
        Cast, switch or withdraw a vote on a post or a comment.

        Args:
            db: Database session
            user_id: Voter ID
            value: UP or DOWN
            post_id: Target post (mutually exclusive with comment_id)
            comment_id: Target comment

        Returns:
            New tally, the voter's resulting vote (None after a toggle-off)
            and the reputation delta applied to the author

        Raises:
            ValidationException: If not exactly one target is given
            PostNotFoundException / CommentNotFoundException: If the target is missing
            CannotVoteOwnContentException: If the voter authored the target
            ConflictException: If a concurrent request created the same vote
        """
        target = VoteService._load_target(db, post_id, comment_id)
        if target.author_id == user_id:
            raise CannotVoteOwnContentException()

        kind = "post" if post_id is not None else "comment"

        def points(direction: VoteType) -> int:
            return ReputationService.points_for(ACTIONS[kind][direction])

        vote_repo = VoteRepository(db)
        existing = vote_repo.get_for_target(user_id, post_id, comment_id)
        previous = existing.value if existing else None

        try:
            with atomic(db):
                if existing is None:
                    vote_repo.add(
                        db_models.Vote(
                            user_id=user_id,
                            post_id=post_id,
                            comment_id=comment_id,
                            value=value,
                        )
                    )
                    tally_change = TALLY_STEP[value]
                    reputation_delta = points(value)
                    user_vote: VoteType | None = value
                elif existing.value == value:
                    vote_repo.delete(existing)
                    tally_change = -TALLY_STEP[value]
                    reputation_delta = -points(value)
                    user_vote = None
                else:
                    existing.value = value
                    tally_change = TALLY_STEP[value] - TALLY_STEP[previous]  # type: ignore[index]
                    reputation_delta = points(value) - points(previous)  # type: ignore[arg-type]
                    user_vote = value

                target.votes += tally_change
                ReputationService.adjust(db, target.author_id, reputation_delta)
        except IntegrityError:
            raise ConflictException("Vote already recorded, please retry")

        logger.info(
            f"User {user_id} vote on {kind} {target.id}: "
            f"{previous.value if previous else 'none'} -> "
            f"{user_vote.value if user_vote else 'none'}"
        )

        outcome = VoteOutcome(
            votes=target.votes,
            user_vote=user_vote,
            reputation_delta=reputation_delta,
        )

        if existing is None and value == VoteType.UP and kind == "post":
            NotificationService.notify_vote(db, target, user_id)  # type: ignore[arg-type]

        return outcome

    @staticmethod
    def get_user_vote(
        db: Session,
        user_id: int,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> VoteType | None:
        """
        The user's current vote on a target, if any.

        Raises:
            ValidationException: If not exactly one target is given
        """
        if (post_id is None) == (comment_id is None):
            raise ValidationException("Provide exactly one of post_id or comment_id")
        vote = VoteRepository(db).get_for_target(user_id, post_id, comment_id)
        return vote.value if vote else None
