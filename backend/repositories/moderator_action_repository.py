"""
Repository for the moderator action audit log.

The log is append-only; services only ever call `add` on it.
"""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from repositories.base import BaseRepository
from repositories.db_models import ModeratorAction, ModeratorActionType


class ModeratorActionRepository(BaseRepository[ModeratorAction]):
    """Repository for moderator action data access."""

    def __init__(self, db: Session):
        super().__init__(ModeratorAction, db)

    def list_query(
        self,
        moderator_id: int | None = None,
        action_type: ModeratorActionType | None = None,
    ) -> Query[ModeratorAction]:
        query = self.db.query(ModeratorAction).options(
            joinedload(ModeratorAction.moderator)
        )
        if moderator_id is not None:
            query = query.filter(ModeratorAction.moderator_id == moderator_id)
        if action_type is not None:
            query = query.filter(ModeratorAction.action_type == action_type)
        return query.order_by(
            ModeratorAction.created_at.desc(), ModeratorAction.id.desc()
        )

    def count_by_type_for_moderator(
        self, moderator_id: int
    ) -> dict[ModeratorActionType, int]:
        """
        Per action type totals for one moderator.

        Args:
            moderator_id: Moderator ID

        Returns:
            Mapping of action type to count (types never used are absent)
        """
        rows = (
            self.db.query(ModeratorAction.action_type, func.count(ModeratorAction.id))
            .filter(ModeratorAction.moderator_id == moderator_id)
            .group_by(ModeratorAction.action_type)
            .all()
        )
        return {action_type: count for action_type, count in rows}

    def count_since(
        self,
        action_type: ModeratorActionType,
        since: datetime,
        moderator_id: int | None = None,
    ) -> int:
        query = self.db.query(ModeratorAction).filter(
            ModeratorAction.action_type == action_type,
            ModeratorAction.created_at >= since,
        )
        if moderator_id is not None:
            query = query.filter(ModeratorAction.moderator_id == moderator_id)
        return query.count()

    def count_for_moderator_between(
        self, moderator_id: int, start: datetime, end: datetime
    ) -> int:
        """Actions a moderator took in [start, end)."""
        return (
            self.db.query(ModeratorAction)
            .filter(
                ModeratorAction.moderator_id == moderator_id,
                ModeratorAction.created_at >= start,
                ModeratorAction.created_at < end,
            )
            .count()
        )
