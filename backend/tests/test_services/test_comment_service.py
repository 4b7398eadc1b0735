"""Tests for CommentService: threading, permissions and accepted answers."""

import pytest

import repositories.db_models as db_models
from models.exceptions import (
    CommentNotFoundException,
    PermissionDeniedException,
    PostLockedException,
    PostNotFoundException,
    ValidationException,
)
from services.comment_service import CommentService
from services.reputation_service import ReputationService


def _accepted_ids(db_session, post_id: int) -> list[int]:
    return [
        c.id
        for c in db_session.query(db_models.Comment)
        .filter(
            db_models.Comment.post_id == post_id,
            db_models.Comment.is_accepted.is_(True),
        )
        .all()
    ]


class TestCreateComment:
    """Answering and replying."""

    def test_create_increments_count(self, db_session, test_post, test_comment) -> None:
        """Each comment bumps the post's comment_count."""
        db_session.refresh(test_post)
        assert test_post.comment_count == 1
        assert test_comment.parent_id is None

    def test_content_is_sanitized(self, db_session, test_post, other_user) -> None:
        """Script tags never reach the database."""
        comment = CommentService.create_comment(
            db_session,
            test_post.id,
            other_user.id,
            "<script>alert(1)</script><strong>Use json.loads</strong>",
        )
        assert "<script>" not in comment.content
        assert "<strong>Use json.loads</strong>" in comment.content

    def test_locked_post_rejects_comments(self, db_session, test_post, other_user) -> None:
        """Locked posts accept no new answers."""
        test_post.is_locked = True
        db_session.commit()

        with pytest.raises(PostLockedException):
            CommentService.create_comment(
                db_session, test_post.id, other_user.id, "A late answer to this question."
            )

    def test_hidden_post_is_not_found(self, db_session, test_post, other_user) -> None:
        """Hidden posts behave as missing for commenters."""
        test_post.is_hidden = True
        db_session.commit()

        with pytest.raises(PostNotFoundException):
            CommentService.create_comment(
                db_session, test_post.id, other_user.id, "An answer nobody can see."
            )

    def test_reply_parent_must_exist(self, db_session, test_post, other_user) -> None:
        """Replying to an unknown comment fails."""
        with pytest.raises(CommentNotFoundException):
            CommentService.create_comment(
                db_session, test_post.id, other_user.id, "Replying to nothing here.", 9999
            )

    def test_reply_parent_must_share_post(
        self, db_session, post_factory, test_comment, test_user
    ) -> None:
        """A reply stays on its parent's post."""
        second = post_factory(test_user, title="Another question about parsing")

        with pytest.raises(ValidationException):
            CommentService.create_comment(
                db_session, second.id, test_user.id, "Reply on the wrong post.", test_comment.id
            )

    def test_reply_notifies_parent_author(
        self, db_session, test_post, test_comment, test_user, other_user, comment_factory
    ) -> None:
        """The parent's author gets a REPLY notification."""
        comment_factory(test_post, test_user, "Thanks, that fixed it for me.", test_comment.id)

        replies = (
            db_session.query(db_models.Notification)
            .filter(
                db_models.Notification.user_id == other_user.id,
                db_models.Notification.type == db_models.NotificationType.REPLY,
            )
            .count()
        )
        assert replies == 1


class TestAcceptAnswer:
    """At most one accepted answer per post, with reputation bonuses."""

    def test_accept_awards_both_parties(
        self, db_session, test_post, test_comment, test_user, other_user
    ) -> None:
        """Answer author gets 25, post author gets 2."""
        CommentService.accept_comment(db_session, test_comment.id, test_user.id)

        db_session.refresh(test_post)
        db_session.refresh(test_user)
        db_session.refresh(other_user)
        assert test_post.has_accepted_answer is True
        assert other_user.reputation == 25
        assert test_user.reputation == 2

    def test_accepting_another_replaces_previous(
        self, db_session, test_post, test_comment, test_user, other_user, user_factory, comment_factory
    ) -> None:
        """A new acceptance unaccepts the old answer and takes back its bonus."""
        carol = user_factory("carol")
        second = comment_factory(test_post, carol, "A better answer with more detail.")

        CommentService.accept_comment(db_session, test_comment.id, test_user.id)
        CommentService.accept_comment(db_session, second.id, test_user.id)

        assert _accepted_ids(db_session, test_post.id) == [second.id]
        db_session.refresh(other_user)
        db_session.refresh(carol)
        db_session.refresh(test_user)
        assert other_user.reputation == 0
        assert carol.reputation == 25
        assert test_user.reputation == 4

    def test_only_post_author_can_accept(
        self, db_session, test_comment, user_factory
    ) -> None:
        """Other users cannot accept answers."""
        carol = user_factory("carol")
        with pytest.raises(PermissionDeniedException):
            CommentService.accept_comment(db_session, test_comment.id, carol.id)

    def test_cannot_accept_own_comment(
        self, db_session, test_post, test_user, comment_factory
    ) -> None:
        """Post authors cannot accept their own comments."""
        own = comment_factory(test_post, test_user, "Answering my own question here.")
        with pytest.raises(ValidationException):
            CommentService.accept_comment(db_session, own.id, test_user.id)

    def test_cannot_accept_twice(self, db_session, test_comment, test_user) -> None:
        """Accepting the accepted answer again is rejected."""
        CommentService.accept_comment(db_session, test_comment.id, test_user.id)
        with pytest.raises(ValidationException):
            CommentService.accept_comment(db_session, test_comment.id, test_user.id)

    def test_unaccept_reverses_bonuses(
        self, db_session, test_post, test_comment, test_user, other_user
    ) -> None:
        """Unaccepting takes back both bonuses."""
        CommentService.accept_comment(db_session, test_comment.id, test_user.id)
        CommentService.unaccept_comment(db_session, test_comment.id, test_user.id)

        db_session.refresh(test_post)
        db_session.refresh(test_user)
        db_session.refresh(other_user)
        assert test_post.has_accepted_answer is False
        assert other_user.reputation == 0
        assert test_user.reputation == 0

    def test_unaccept_requires_accepted(self, db_session, test_comment, test_user) -> None:
        with pytest.raises(ValidationException):
            CommentService.unaccept_comment(db_session, test_comment.id, test_user.id)


class TestDeleteComment:
    """Author or staff may delete; counters follow."""

    def test_other_user_cannot_delete(self, db_session, test_comment, user_factory) -> None:
        """Plain users cannot delete someone else's comment."""
        carol = user_factory("carol")
        with pytest.raises(PermissionDeniedException):
            CommentService.delete_comment(db_session, test_comment.id, carol)

    def test_moderator_can_delete(self, db_session, test_post, test_comment, moderator_user) -> None:
        """Staff may delete any comment."""
        CommentService.delete_comment(db_session, test_comment.id, moderator_user)

        assert db_session.get(db_models.Comment, test_comment.id) is None
        db_session.refresh(test_post)
        assert test_post.comment_count == 0

    def test_delete_removes_replies(
        self, db_session, test_post, test_comment, test_user, other_user, comment_factory
    ) -> None:
        """Replies go with their parent and leave the count consistent."""
        comment_factory(test_post, test_user, "A reply under the first answer.", test_comment.id)
        db_session.refresh(test_post)
        assert test_post.comment_count == 2

        CommentService.delete_comment(db_session, test_comment.id, other_user)

        db_session.refresh(test_post)
        assert test_post.comment_count == 0
        assert db_session.query(db_models.Comment).count() == 0

    def test_deleting_accepted_answer_clears_flag(
        self, db_session, test_post, test_comment, test_user, other_user
    ) -> None:
        """The post no longer has an accepted answer once it is deleted."""
        CommentService.accept_comment(db_session, test_comment.id, test_user.id)
        CommentService.delete_comment(db_session, test_comment.id, other_user)

        db_session.refresh(test_post)
        assert test_post.has_accepted_answer is False


class TestAcceptRollback:
    def test_failed_bonus_keeps_previous_answer(
        self,
        db_session,
        monkeypatch,
        test_post,
        test_comment,
        test_user,
        other_user,
        user_factory,
        comment_factory,
    ) -> None:
        """A failure after the old answer was unaccepted restores it."""
        carol = user_factory("carol")
        second = comment_factory(test_post, carol, "A better answer with more detail.")
        CommentService.accept_comment(db_session, test_comment.id, test_user.id)

        real_adjust = ReputationService.adjust
        calls = []

        def fail_second_call(db, user_id, delta):
            calls.append(user_id)
            if len(calls) == 2:
                raise RuntimeError("reputation store offline")
            return real_adjust(db, user_id, delta)

        monkeypatch.setattr(ReputationService, "adjust", staticmethod(fail_second_call))

        with pytest.raises(RuntimeError):
            CommentService.accept_comment(db_session, second.id, test_user.id)

        assert calls == [other_user.id, carol.id]
        assert _accepted_ids(db_session, test_post.id) == [test_comment.id]
        for entity in (test_post, test_user, other_user, carol):
            db_session.refresh(entity)
        assert test_post.has_accepted_answer is True
        assert other_user.reputation == 25
        assert carol.reputation == 0
        assert test_user.reputation == 2
