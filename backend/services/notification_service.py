"""
In-app user notifications.

Creation is fire-and-forget: callers invoke `notify_*` after their own
transaction has committed, and a failure here is logged and swallowed so a
notification problem never fails the action that triggered it.
"""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.pagination import PageParams
from models.exceptions import NotificationNotFoundException
from repositories.base import paginate
from repositories.db_models import NotificationType
from repositories.notification_repository import NotificationRepository


class NotificationService:
    """
    Notification creation and inbox management.

    The `notify*` methods never raise.
    """

    @staticmethod
    def notify(
        db: Session,
        user_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: str | None = None,
        actor_id: int | None = None,
    ) -> db_models.Notification | None:
        """
        Create and commit one notification.

        Args:
            db: Database session with no pending work of the caller
            user_id: Recipient
            notification_type: Notification category
            title: Short title
            message: Body
            link: Frontend path the notification points at
            actor_id: User who caused it; self-notifications are skipped

        Returns:
            The notification, or None if skipped or failed
        """
        if actor_id is not None and actor_id == user_id:
            return None

        notification = db_models.Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            link=link,
        )
        try:
            db.add(notification)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(
                f"Failed to create {notification_type.value} notification "
                f"for user {user_id}: {e!r}"
            )
            return None
        return notification

    @staticmethod
    def notify_vote(db: Session, post: db_models.Post, voter_id: int) -> None:
        NotificationService.notify(
            db,
            user_id=post.author_id,
            notification_type=NotificationType.VOTE,
            title="New upvote",
            message=f'Your post "{post.title}" received an upvote',
            link=f"/posts/{post.slug}",
            actor_id=voter_id,
        )

    @staticmethod
    def notify_comment(
        db: Session, post: db_models.Post, comment: db_models.Comment
    ) -> None:
        NotificationService.notify(
            db,
            user_id=post.author_id,
            notification_type=NotificationType.COMMENT,
            title="New answer",
            message=f'Someone answered your post "{post.title}"',
            link=f"/posts/{post.slug}#comment-{comment.id}",
            actor_id=comment.author_id,
        )

    @staticmethod
    def notify_reply(
        db: Session,
        post: db_models.Post,
        parent: db_models.Comment,
        reply: db_models.Comment,
    ) -> None:
        NotificationService.notify(
            db,
            user_id=parent.author_id,
            notification_type=NotificationType.REPLY,
            title="New reply",
            message=f'Someone replied to your comment on "{post.title}"',
            link=f"/posts/{post.slug}#comment-{reply.id}",
            actor_id=reply.author_id,
        )

    @staticmethod
    def notify_accepted(
        db: Session, post: db_models.Post, comment: db_models.Comment
    ) -> None:
        NotificationService.notify(
            db,
            user_id=comment.author_id,
            notification_type=NotificationType.ACCEPTED,
            title="Answer accepted",
            message=f'Your answer on "{post.title}" was accepted',
            link=f"/posts/{post.slug}#comment-{comment.id}",
            actor_id=post.author_id,
        )

    @staticmethod
    def notify_system(db: Session, user_id: int, title: str, message: str) -> None:
        NotificationService.notify(
            db,
            user_id=user_id,
            notification_type=NotificationType.SYSTEM,
            title=title,
            message=message,
        )

    @staticmethod
    def get_notifications(
        db: Session, user_id: int, params: PageParams, unread_only: bool = False
    ) -> tuple[list[db_models.Notification], int]:
        query = NotificationRepository(db).list_query(user_id, unread_only)
        return paginate(query, params.page, params.limit)

    @staticmethod
    def get_unread_count(db: Session, user_id: int) -> int:
        return NotificationRepository(db).count_unread(user_id)

    @staticmethod
    def mark_as_read(
        db: Session, notification_id: int, user_id: int
    ) -> db_models.Notification:
        """
        Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundException: If missing or owned by someone else.
        """
        repo = NotificationRepository(db)
        notification = repo.get_by_id(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotificationNotFoundException(
                f"Notification with ID {notification_id} not found"
            )
        notification.is_read = True
        return repo.save(notification)

    @staticmethod
    def mark_all_as_read(db: Session, user_id: int) -> int:
        repo = NotificationRepository(db)
        updated = repo.mark_all_read(user_id)
        repo.commit()
        return updated
