"""Tests for AdminService."""

import pytest

import repositories.db_models as db_models
from helpers.pagination import PageParams
from models.exceptions import UserNotFoundException, ValidationException
from repositories.db_models import ModeratorActionType, Role, TargetType
from services.admin_service import AdminService


class TestRoles:
    def test_grant_moderator(self, db_session, admin_user, other_user) -> None:
        """Granted roles sit next to the implicit USER role."""
        user = AdminService.update_user_roles(
            db_session, admin_user.id, other_user.id, [Role.MODERATOR]
        )
        assert user.roles == {Role.USER, Role.MODERATOR}

    def test_revoke_all_keeps_user(self, db_session, admin_user, moderator_user) -> None:
        user = AdminService.update_user_roles(db_session, admin_user.id, moderator_user.id, [])
        assert user.roles == {Role.USER}

    def test_cannot_change_own_roles(self, db_session, admin_user) -> None:
        with pytest.raises(ValidationException):
            AdminService.update_user_roles(db_session, admin_user.id, admin_user.id, [])

    def test_unknown_user(self, db_session, admin_user) -> None:
        with pytest.raises(UserNotFoundException):
            AdminService.update_user_roles(db_session, admin_user.id, 9999, [Role.ADMIN])


class TestBan:
    def test_ban_logs_action(self, db_session, admin_user, other_user) -> None:
        """Banning deactivates the account and writes a USER-targeted audit row."""
        user = AdminService.ban_user(db_session, admin_user.id, other_user.id, "Repeated spam")

        assert user.is_active is False
        action = db_session.query(db_models.ModeratorAction).one()
        assert action.action_type == ModeratorActionType.BAN_USER
        assert (action.target_type, action.target_id) == (TargetType.USER, other_user.id)
        assert action.reason == "Repeated spam"

    def test_cannot_ban_self_or_admin(self, db_session, admin_user, user_factory) -> None:
        second_admin = user_factory("root", roles={Role.ADMIN})
        with pytest.raises(ValidationException):
            AdminService.ban_user(db_session, admin_user.id, admin_user.id)
        with pytest.raises(ValidationException):
            AdminService.ban_user(db_session, admin_user.id, second_admin.id)

    def test_ban_twice(self, db_session, admin_user, other_user) -> None:
        AdminService.ban_user(db_session, admin_user.id, other_user.id)
        with pytest.raises(ValidationException):
            AdminService.ban_user(db_session, admin_user.id, other_user.id)

    def test_unban(self, db_session, admin_user, other_user) -> None:
        AdminService.ban_user(db_session, admin_user.id, other_user.id)
        user = AdminService.unban_user(db_session, admin_user.id, other_user.id)

        assert user.is_active is True
        kinds = [a.action_type for a in db_session.query(db_models.ModeratorAction).all()]
        assert sorted(k.value for k in kinds) == ["BAN_USER", "UNBAN_USER"]

    def test_unban_active_user(self, db_session, admin_user, other_user) -> None:
        with pytest.raises(ValidationException):
            AdminService.unban_user(db_session, admin_user.id, other_user.id)


class TestDeleteUser:
    def test_delete_user_removes_content(
        self, db_session, admin_user, test_user, test_post, test_tag
    ) -> None:
        """Posts go with their author and tag counters follow."""
        AdminService.delete_user(db_session, admin_user.id, test_user.id)

        assert db_session.get(db_models.User, test_user.id) is None
        assert db_session.query(db_models.Post).count() == 0
        db_session.refresh(test_tag)
        assert test_tag.post_count == 0

    def test_cannot_delete_admin(self, db_session, admin_user) -> None:
        with pytest.raises(ValidationException):
            AdminService.delete_user(db_session, admin_user.id, admin_user.id)


class TestStatisticsAndListing:
    def test_statistics(self, db_session, admin_user, moderator_user, test_post, test_comment) -> None:
        stats = AdminService.get_statistics(db_session)

        # alice, bob, mod, admin
        assert stats.total_users == 4
        assert stats.active_users == 4
        assert stats.moderators == 1
        assert stats.admins == 1
        assert stats.total_posts == 1
        assert stats.visible_posts == 1
        assert stats.total_comments == 1
        assert stats.pending_reports == 0
        assert stats.posts_this_week == 1

    def test_list_users_filters(self, db_session, admin_user, moderator_user, test_user) -> None:
        params = PageParams(page=1, limit=20)

        moderators, total = AdminService.list_users(db_session, params, role=Role.MODERATOR)
        found, _ = AdminService.list_users(db_session, params, search="ali")

        assert total == 1 and moderators[0].id == moderator_user.id
        assert [u.id for u in found] == [test_user.id]

    def test_delete_post_goes_through_audit(self, db_session, admin_user, test_post) -> None:
        action = AdminService.delete_post(db_session, admin_user.id, test_post.id)

        assert action.action_type == ModeratorActionType.DELETE_POST
        assert action.reason == "Removed by administrator"
        assert db_session.query(db_models.Post).count() == 0


class TestContentListings:
    def test_all_posts_include_hidden(self, db_session, post_factory, test_user) -> None:
        visible = post_factory(test_user, title="Visible question about parsing")
        hidden = post_factory(test_user, title="Hidden question about parsing")
        hidden.is_hidden = True
        db_session.commit()

        posts, total = AdminService.list_all_posts(db_session, PageParams(page=1, limit=20))

        assert total == 2
        assert [p.id for p in posts] == [hidden.id, visible.id]

    def test_all_comments_carry_post(self, db_session, test_post, test_comment) -> None:
        test_comment.is_hidden = True
        db_session.commit()

        comments, total = AdminService.list_all_comments(
            db_session, PageParams(page=1, limit=20)
        )

        assert total == 1
        assert comments[0].post.slug == test_post.slug

    def test_recent_posts_and_users(
        self, db_session, post_factory, test_user, admin_user, user_factory
    ) -> None:
        posts = [
            post_factory(test_user, title=f"Recent question number {i}") for i in range(3)
        ]
        newest_user = user_factory("newcomer")

        recent_posts = AdminService.get_recent_posts(db_session, limit=2)
        recent_users = AdminService.get_recent_users(db_session, limit=1)

        assert [p.id for p in recent_posts] == [posts[2].id, posts[1].id]
        assert [u.id for u in recent_users] == [newest_user.id]
