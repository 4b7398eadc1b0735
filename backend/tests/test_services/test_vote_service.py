"""Tests for the vote state machine."""

import pytest

import repositories.db_models as db_models
from models.exceptions import (
    CannotVoteOwnContentException,
    PostNotFoundException,
    ValidationException,
)
from repositories.db_models import NotificationType, VoteType
from services.reputation_service import ReputationService
from services.vote_service import VoteService


class TestPostVotes:
    """Transitions between no-vote, UP and DOWN on a post."""

    def test_first_upvote(self, db_session, test_post, test_user, other_user) -> None:
        """UP from no-vote adds one to the tally and 10 reputation."""
        outcome = VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=test_post.id)

        assert outcome.votes == 1
        assert outcome.user_vote == VoteType.UP
        assert outcome.reputation_delta == 10
        db_session.refresh(test_user)
        assert test_user.reputation == 10

    def test_switch_up_to_down(self, db_session, test_post, test_user, other_user) -> None:
        """Switching UP to DOWN moves the tally by two and reputation by -12."""
        test_user.reputation = 100
        db_session.commit()

        VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=test_post.id)
        outcome = VoteService.vote(
            db_session, other_user.id, VoteType.DOWN, post_id=test_post.id
        )

        assert outcome.votes == -1
        assert outcome.user_vote == VoteType.DOWN
        assert outcome.reputation_delta == -12
        db_session.refresh(test_user)
        assert test_user.reputation == 98
        assert db_session.query(db_models.Vote).count() == 1

    def test_same_direction_toggles_off(
        self, db_session, test_post, test_user, other_user
    ) -> None:
        """Repeating the current vote withdraws it and reverses its effects."""
        VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=test_post.id)
        outcome = VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=test_post.id)

        assert outcome.votes == 0
        assert outcome.user_vote is None
        assert outcome.reputation_delta == -10
        db_session.refresh(test_user)
        assert test_user.reputation == 0
        assert db_session.query(db_models.Vote).count() == 0
        assert VoteService.get_user_vote(db_session, other_user.id, post_id=test_post.id) is None

    def test_cannot_vote_own_post(self, db_session, test_post, test_user) -> None:
        """Authors cannot vote on their own content."""
        with pytest.raises(CannotVoteOwnContentException):
            VoteService.vote(db_session, test_user.id, VoteType.UP, post_id=test_post.id)

    def test_missing_post(self, db_session, other_user) -> None:
        """Voting on an unknown post is NOT_FOUND."""
        with pytest.raises(PostNotFoundException):
            VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=9999)

    def test_requires_exactly_one_target(self, db_session, test_post, test_comment, other_user) -> None:
        """A vote names a post or a comment, never both."""
        with pytest.raises(ValidationException):
            VoteService.vote(
                db_session,
                other_user.id,
                VoteType.UP,
                post_id=test_post.id,
                comment_id=test_comment.id,
            )
        with pytest.raises(ValidationException):
            VoteService.vote(db_session, other_user.id, VoteType.UP)

    def test_first_upvote_notifies_author(
        self, db_session, test_post, test_user, other_user
    ) -> None:
        """The post author hears about a new upvote once."""
        VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=test_post.id)
        VoteService.vote(db_session, other_user.id, VoteType.DOWN, post_id=test_post.id)

        notifications = (
            db_session.query(db_models.Notification)
            .filter(
                db_models.Notification.user_id == test_user.id,
                db_models.Notification.type == NotificationType.VOTE,
            )
            .all()
        )
        assert len(notifications) == 1


class TestCommentVotes:
    """Comment votes use the comment point values."""

    def test_upvote_comment(self, db_session, test_comment, test_user, other_user) -> None:
        """UP on a comment is worth 5 to its author."""
        outcome = VoteService.vote(
            db_session, test_user.id, VoteType.UP, comment_id=test_comment.id
        )

        assert outcome.votes == 1
        assert outcome.reputation_delta == 5
        db_session.refresh(other_user)
        assert other_user.reputation == 5

    def test_switch_comment_down_to_up(
        self, db_session, test_comment, test_user, other_user
    ) -> None:
        """DOWN to UP on a comment is worth +6; the first -1 clamped at zero."""
        VoteService.vote(db_session, test_user.id, VoteType.DOWN, comment_id=test_comment.id)
        outcome = VoteService.vote(
            db_session, test_user.id, VoteType.UP, comment_id=test_comment.id
        )

        assert outcome.votes == 1
        assert outcome.reputation_delta == 6
        db_session.refresh(other_user)
        assert other_user.reputation == 6


def _reputation_offline(db, user_id, delta):
    raise RuntimeError("reputation store offline")


class TestVoteRollback:
    """A failed reputation update leaves no trace of the vote."""

    def test_new_vote_rolled_back(
        self, db_session, test_post, test_user, other_user, monkeypatch
    ) -> None:
        monkeypatch.setattr(ReputationService, "adjust", staticmethod(_reputation_offline))
        with pytest.raises(RuntimeError):
            VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=test_post.id)

        db_session.refresh(test_post)
        db_session.refresh(test_user)
        assert test_post.votes == 0
        assert db_session.query(db_models.Vote).count() == 0
        assert test_user.reputation == 0

    def test_switch_rolled_back(
        self, db_session, monkeypatch, test_post, test_user, other_user
    ) -> None:
        """The earlier UP survives a failed switch to DOWN."""
        VoteService.vote(db_session, other_user.id, VoteType.UP, post_id=test_post.id)

        monkeypatch.setattr(ReputationService, "adjust", staticmethod(_reputation_offline))

        with pytest.raises(RuntimeError):
            VoteService.vote(db_session, other_user.id, VoteType.DOWN, post_id=test_post.id)

        db_session.refresh(test_post)
        db_session.refresh(test_user)
        assert test_post.votes == 1
        assert [v.value for v in db_session.query(db_models.Vote).all()] == [VoteType.UP]
        assert test_user.reputation == 10
