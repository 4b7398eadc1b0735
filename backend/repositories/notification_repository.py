"""
Repository for user notification operations.
"""

from sqlalchemy.orm import Query, Session

from repositories.base import BaseRepository
from repositories.db_models import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notification data access."""

    def __init__(self, db: Session):
        super().__init__(Notification, db)

    def list_query(self, user_id: int, unread_only: bool = False) -> Query[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc())

    def count_unread(self, user_id: int) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .count()
        )

    def mark_all_read(self, user_id: int) -> int:
        """
        Mark every unread notification of a user as read.

        Args:
            user_id: Owner of the notifications

        Returns:
            Number of notifications updated
        """
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
