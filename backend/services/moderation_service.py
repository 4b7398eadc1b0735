"""
Direct moderation of posts and comments.

Unlike `ModeratorService.take_action` these toggles do not touch reports;
each one still leaves an entry in the moderator action log.
"""

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.pagination import PageParams
from models.exceptions import (
    CommentNotFoundException,
    PostNotFoundException,
    ValidationException,
)
from repositories.base import paginate
from repositories.comment_repository import CommentRepository
from repositories.database import atomic
from repositories.db_models import ModeratorActionType, TargetType
from repositories.moderator_action_repository import ModeratorActionRepository
from repositories.post_repository import PostRepository


class ModerationService:
    """Service for hide/lock toggles and the moderation log."""

    @staticmethod
    def _toggle(
        db: Session,
        target: db_models.Post | db_models.Comment,
        target_type: TargetType,
        attribute: str,
        value: bool,
        action_type: ModeratorActionType,
        moderator_id: int,
        reason: str | None,
        already_message: str,
    ) -> db_models.ModeratorAction:
        if getattr(target, attribute) == value:
            raise ValidationException(already_message)

        with atomic(db):
            setattr(target, attribute, value)
            action = ModeratorActionRepository(db).add(
                db_models.ModeratorAction(
                    moderator_id=moderator_id,
                    action_type=action_type,
                    target_type=target_type,
                    target_id=target.id,
                    reason=reason or action_type.value.replace("_", " ").capitalize(),
                )
            )

        logger.info(
            f"Moderator {moderator_id}: {action_type.value} "
            f"{target_type.value.lower()} {action.target_id}"
        )
        return action

    @staticmethod
    def _get_post(db: Session, post_id: int) -> db_models.Post:
        post = PostRepository(db).get_by_id(post_id)
        if post is None:
            raise PostNotFoundException(f"Post with ID {post_id} not found")
        return post

    @staticmethod
    def _get_comment(db: Session, comment_id: int) -> db_models.Comment:
        comment = CommentRepository(db).get_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundException(f"Comment with ID {comment_id} not found")
        return comment

    @staticmethod
    def hide_post(
        db: Session, post_id: int, moderator_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        """
        Hide a post from public listings.

        Raises:
            PostNotFoundException: If the post does not exist
            ValidationException: If the post is already hidden
        """
        return ModerationService._toggle(
            db,
            ModerationService._get_post(db, post_id),
            TargetType.POST,
            "is_hidden",
            True,
            ModeratorActionType.HIDE_POST,
            moderator_id,
            reason,
            "Post is already hidden",
        )

    @staticmethod
    def unhide_post(
        db: Session, post_id: int, moderator_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        return ModerationService._toggle(
            db,
            ModerationService._get_post(db, post_id),
            TargetType.POST,
            "is_hidden",
            False,
            ModeratorActionType.UNHIDE_POST,
            moderator_id,
            reason,
            "Post is not hidden",
        )

    @staticmethod
    def lock_post(
        db: Session, post_id: int, moderator_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        """
        Lock a post against new comments.

        Raises:
            PostNotFoundException: If the post does not exist
            ValidationException: If the post is already locked
        """
        return ModerationService._toggle(
            db,
            ModerationService._get_post(db, post_id),
            TargetType.POST,
            "is_locked",
            True,
            ModeratorActionType.LOCK_POST,
            moderator_id,
            reason,
            "Post is already locked",
        )

    @staticmethod
    def unlock_post(
        db: Session, post_id: int, moderator_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        return ModerationService._toggle(
            db,
            ModerationService._get_post(db, post_id),
            TargetType.POST,
            "is_locked",
            False,
            ModeratorActionType.UNLOCK_POST,
            moderator_id,
            reason,
            "Post is not locked",
        )

    @staticmethod
    def hide_comment(
        db: Session, comment_id: int, moderator_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        return ModerationService._toggle(
            db,
            ModerationService._get_comment(db, comment_id),
            TargetType.COMMENT,
            "is_hidden",
            True,
            ModeratorActionType.HIDE_COMMENT,
            moderator_id,
            reason,
            "Comment is already hidden",
        )

    @staticmethod
    def unhide_comment(
        db: Session, comment_id: int, moderator_id: int, reason: str | None = None
    ) -> db_models.ModeratorAction:
        return ModerationService._toggle(
            db,
            ModerationService._get_comment(db, comment_id),
            TargetType.COMMENT,
            "is_hidden",
            False,
            ModeratorActionType.UNHIDE_COMMENT,
            moderator_id,
            reason,
            "Comment is not hidden",
        )

    @staticmethod
    def get_moderation_actions(
        db: Session,
        params: PageParams,
        action_type: ModeratorActionType | None = None,
    ) -> tuple[list[db_models.ModeratorAction], int]:
        return paginate(
            ModeratorActionRepository(db).list_query(action_type=action_type),
            params.page,
            params.limit,
        )
