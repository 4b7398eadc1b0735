"""
Admin service for user management and platform statistics.
"""

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PageParams
from helpers.time_utils import days_ago
from models.exceptions import UserNotFoundException, ValidationException
from repositories.base import paginate
from repositories.comment_repository import CommentRepository
from repositories.database import atomic
from repositories.db_models import ModeratorActionType, ReportStatus, Role, TargetType
from repositories.moderator_action_repository import ModeratorActionRepository
from repositories.post_repository import PostRepository
from repositories.report_repository import ReportRepository
from repositories.user_repository import UserRepository
from repositories.vote_repository import VoteRepository
from services.moderator_service import ModeratorService


class AdminService:
    """Service for admin-only operations."""

    @staticmethod
    def _get_user_or_404(db: Session, user_id: int) -> db_models.User:
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise UserNotFoundException(f"User with ID {user_id} not found")
        return user

    @staticmethod
    def list_users(
        db: Session,
        params: PageParams,
        search: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[db_models.User], int]:
        query = UserRepository(db).search_query(
            search=search, role=role, is_active=is_active
        )
        return paginate(query, params.page, params.limit)

    @staticmethod
    def update_user_roles(
        db: Session, admin_id: int, user_id: int, roles: list[Role]
    ) -> db_models.User:
        """
        Replace a user's roles. USER is always kept.

        Args:
            db: Database session
            admin_id: Acting admin
            user_id: Target user
            roles: Complete desired role set

        Returns:
            Updated user

        Raises:
            UserNotFoundException: If the user does not exist
            ValidationException: If the admin targets their own account
        """
        user = AdminService._get_user_or_404(db, user_id)
        if user_id == admin_id:
            raise ValidationException("You cannot change your own roles")

        old_roles = sorted(role.value for role in user.roles)
        with atomic(db):
            UserRepository(db).set_roles(user, set(roles))

        db.refresh(user)
        logger.info(
            f"Admin {admin_id} changed roles of user {user_id}: "
            f"{old_roles} -> {sorted(role.value for role in user.roles)}"
        )
        return user

    @staticmethod
    def ban_user(
        db: Session, admin_id: int, user_id: int, reason: str | None = None
    ) -> db_models.User:
        """
        Deactivate an account and log a BAN_USER action.

        Raises:
            UserNotFoundException: If the user does not exist
            ValidationException: If banning oneself, an admin, or a banned user
        """
        user = AdminService._get_user_or_404(db, user_id)
        if user_id == admin_id:
            raise ValidationException("You cannot ban yourself")
        if Role.ADMIN in user.roles:
            raise ValidationException("You cannot ban an administrator")
        if not user.is_active:
            raise ValidationException("User is already banned")

        with atomic(db):
            user.is_active = False
            ModeratorActionRepository(db).add(
                db_models.ModeratorAction(
                    moderator_id=admin_id,
                    action_type=ModeratorActionType.BAN_USER,
                    target_type=TargetType.USER,
                    target_id=user_id,
                    reason=reason or "User banned",
                )
            )

        logger.info(f"Admin {admin_id} banned user {user_id}")
        return user

    @staticmethod
    def unban_user(db: Session, admin_id: int, user_id: int) -> db_models.User:
        """
        Reactivate a banned account and log an UNBAN_USER action.

        Raises:
            UserNotFoundException: If the user does not exist
            ValidationException: If the user is not banned
        """
        user = AdminService._get_user_or_404(db, user_id)
        if user.is_active:
            raise ValidationException("User is not banned")

        with atomic(db):
            user.is_active = True
            ModeratorActionRepository(db).add(
                db_models.ModeratorAction(
                    moderator_id=admin_id,
                    action_type=ModeratorActionType.UNBAN_USER,
                    target_type=TargetType.USER,
                    target_id=user_id,
                    reason="User unbanned",
                )
            )

        logger.info(f"Admin {admin_id} unbanned user {user_id}")
        return user

    @staticmethod
    def delete_user(db: Session, admin_id: int, user_id: int) -> None:
        """
        Delete an account and everything it authored.

        Raises:
            UserNotFoundException: If the user does not exist
            ValidationException: If deleting oneself or an admin
        """
        user = AdminService._get_user_or_404(db, user_id)
        if user_id == admin_id:
            raise ValidationException("You cannot delete yourself")
        if Role.ADMIN in user.roles:
            raise ValidationException("You cannot delete an administrator")

        username = user.username
        with atomic(db):
            for post in list(user.posts):
                PostRepository(db).set_tags(post, [])
            UserRepository(db).delete(user)

        logger.warning(f"Admin {admin_id} deleted user {user_id} ({username})")

    @staticmethod
    def list_all_posts(
        db: Session, params: PageParams
    ) -> tuple[list[db_models.Post], int]:
        """Every post, hidden ones included, newest first."""
        query = PostRepository(db).list_query(include_hidden=True)
        return paginate(query, params.page, params.limit)

    @staticmethod
    def list_all_comments(
        db: Session, params: PageParams
    ) -> tuple[list[db_models.Comment], int]:
        return paginate(
            CommentRepository(db).admin_list_query(), params.page, params.limit
        )

    @staticmethod
    def get_recent_posts(db: Session, limit: int) -> list[db_models.Post]:
        return PostRepository(db).list_query(include_hidden=True).limit(limit).all()

    @staticmethod
    def get_recent_users(db: Session, limit: int) -> list[db_models.User]:
        return UserRepository(db).search_query().limit(limit).all()

    @staticmethod
    def get_statistics(db: Session) -> schemas.PlatformStatistics:
        user_repo = UserRepository(db)
        post_repo = PostRepository(db)
        return schemas.PlatformStatistics(
            total_users=user_repo.count(),
            active_users=user_repo.count_active(),
            moderators=user_repo.count_with_role(Role.MODERATOR),
            admins=user_repo.count_with_role(Role.ADMIN),
            total_posts=post_repo.count(),
            visible_posts=post_repo.count_visible(),
            total_comments=CommentRepository(db).count(),
            total_votes=VoteRepository(db).count(),
            pending_reports=ReportRepository(db).count_by_status(ReportStatus.PENDING),
            posts_this_week=post_repo.count_created_since(days_ago(7)),
        )

    @staticmethod
    def delete_post(
        db: Session, admin_id: int, post_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        """Remove any post, logged as DELETE_POST."""
        return ModeratorService.take_action(
            db,
            admin_id,
            post_id,
            TargetType.POST,
            ModeratorActionType.DELETE_POST,
            reason=reason or "Removed by administrator",
        )

    @staticmethod
    def delete_comment(
        db: Session, admin_id: int, comment_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        """Remove any comment, logged as DELETE_COMMENT."""
        return ModeratorService.take_action(
            db,
            admin_id,
            comment_id,
            TargetType.COMMENT,
            ModeratorActionType.DELETE_COMMENT,
            reason=reason or "Removed by administrator",
        )
