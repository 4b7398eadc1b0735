"""
Reputation engine.

Fixed point values per action and a level step function over cumulative
reputation. Mutations only flush: the caller's transaction decides whether
a reputation change is committed together with the vote or acceptance that
caused it.
"""

import enum
from dataclasses import dataclass

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import UserNotFoundException
from repositories.db_models import Level
from repositories.user_repository import UserRepository


class ReputationAction(str, enum.Enum):
    UPVOTE_POST = "UPVOTE_POST"
    DOWNVOTE_POST = "DOWNVOTE_POST"
    UPVOTE_COMMENT = "UPVOTE_COMMENT"
    DOWNVOTE_COMMENT = "DOWNVOTE_COMMENT"
    ACCEPTED_ANSWER = "ACCEPTED_ANSWER"  # received by the answer's author
    ACCEPT_ANSWER = "ACCEPT_ANSWER"  # received by the post author for accepting


REPUTATION_POINTS: dict[ReputationAction, int] = {
    ReputationAction.UPVOTE_POST: 10,
    ReputationAction.DOWNVOTE_POST: -2,
    ReputationAction.UPVOTE_COMMENT: 5,
    ReputationAction.DOWNVOTE_COMMENT: -1,
    ReputationAction.ACCEPTED_ANSWER: 25,
    ReputationAction.ACCEPT_ANSWER: 2,
}

# Highest threshold first
LEVEL_THRESHOLDS: tuple[tuple[Level, int], ...] = (
    (Level.GURU, 1000),
    (Level.EXPERT, 500),
    (Level.CONTRIBUTOR, 100),
    (Level.NOVICE, 0),
)


@dataclass(frozen=True)
class ReputationResult:
    user_id: int
    reputation: int
    level: Level
    level_changed: bool


@dataclass(frozen=True)
class LevelProgress:
    level: Level
    next_level: Level | None
    points_to_next: int


class ReputationService:
    """Service for reputation arithmetic and persistence."""

    @staticmethod
    def points_for(action: ReputationAction | str) -> int:
        """
        Point delta for an action; unknown actions are worth 0.

        Args:
            action: ReputationAction or its string value

        Returns:
            Signed delta
        """
        try:
            return REPUTATION_POINTS[ReputationAction(action)]
        except ValueError:
            return 0

    @staticmethod
    def calculate_level(reputation: int) -> Level:
        for level, threshold in LEVEL_THRESHOLDS:
            if reputation >= threshold:
                return level
        return Level.NOVICE

    @staticmethod
    def get_level_progress(reputation: int) -> LevelProgress:
        """
        Where a reputation score sits between two levels.

        Args:
            reputation: Current reputation

        Returns:
            Current level, next level (None at the top) and points remaining
        """
        current = ReputationService.calculate_level(reputation)
        next_level = None
        points_to_next = 0
        for level, threshold in LEVEL_THRESHOLDS:
            if threshold > reputation:
                next_level = level
                points_to_next = threshold - reputation
        return LevelProgress(
            level=current, next_level=next_level, points_to_next=points_to_next
        )

    @staticmethod
    def apply_delta(user: db_models.User, delta: int) -> ReputationResult:
        """
        Add a delta to a loaded user, clamping at zero and re-deriving level.

        Args:
            user: User to mutate (not flushed)
            delta: Signed points

        Returns:
            New reputation and level
        """
        new_reputation = max(0, user.reputation + delta)
        new_level = ReputationService.calculate_level(new_reputation)
        level_changed = new_level != user.level

        user.reputation = new_reputation
        if level_changed:
            logger.info(
                f"User {user.id} level {user.level.value} -> {new_level.value} "
                f"(reputation {new_reputation})"
            )
            user.level = new_level

        return ReputationResult(
            user_id=user.id,
            reputation=new_reputation,
            level=new_level,
            level_changed=level_changed,
        )

    @staticmethod
    def adjust(db: Session, user_id: int, delta: int) -> ReputationResult | None:
        """
        Apply a raw delta to a user by id.

        A missing user is logged and reported as None instead of raising, so
        a vote on content whose author was just deleted still succeeds.

        Args:
            db: Database session
            user_id: Target user
            delta: Signed points

        Returns:
            ReputationResult, or None if the user does not exist
        """
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            logger.warning(
                f"Reputation change of {delta} skipped: user {user_id} not found"
            )
            return None

        if delta == 0:
            return ReputationResult(user.id, user.reputation, user.level, False)

        result = ReputationService.apply_delta(user, delta)
        db.flush()
        return result

    @staticmethod
    def update_reputation(
        db: Session, user_id: int, action: ReputationAction | str
    ) -> ReputationResult | None:
        """
        Apply the points of one action to a user.

        Args:
            db: Database session
            user_id: Target user
            action: Reputation action

        Returns:
            ReputationResult, or None if the user does not exist
        """
        return ReputationService.adjust(
            db, user_id, ReputationService.points_for(action)
        )

    @staticmethod
    def adjust_strict(db: Session, user_id: int, delta: int) -> ReputationResult:
        """
        Like `adjust`, but a missing user is an error.

        Raises:
            UserNotFoundException: If the user does not exist.
        """
        result = ReputationService.adjust(db, user_id, delta)
        if result is None:
            raise UserNotFoundException(f"User with ID {user_id} not found")
        return result
