"""
Maintenance mode flag with a short read-through cache.

The flag lives in a single database row. Readers go through `get_snapshot`,
which serves a cached copy for MAINTENANCE_CACHE_TTL_SECONDS; writers clear
the cache so a toggle takes effect on the next request.
"""

import time
from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.time_utils import ensure_utc, utc_now
from models.config import settings
from repositories.config_repository import ConfigRepository
from repositories.database import atomic

DEFAULT_MESSAGE = "The site is under maintenance. Please check back soon."


@dataclass(frozen=True)
class MaintenanceSnapshot:
    is_enabled: bool
    message: str | None
    end_time: datetime | None
    loaded_at: float

    @property
    def expired(self) -> bool:
        """End time has passed but the row has not been switched off yet."""
        return (
            self.is_enabled
            and self.end_time is not None
            and ensure_utc(self.end_time) <= utc_now()
        )


_cache: MaintenanceSnapshot | None = None


def clear_maintenance_cache() -> None:
    global _cache
    _cache = None


class MaintenanceService:
    """Service for the MaintenanceMode singleton."""

    @staticmethod
    def get_status(db: Session) -> db_models.MaintenanceMode:
        """
        Read the maintenance row, creating it disabled if missing.

        An enabled row whose end time has passed is switched off and saved.

        Args:
            db: Database session

        Returns:
            The MaintenanceMode row
        """
        row = ConfigRepository(db).get_or_create_maintenance()
        if (
            row.is_enabled
            and row.end_time is not None
            and ensure_utc(row.end_time) <= utc_now()
        ):
            row.is_enabled = False
            logger.info("Maintenance window ended, maintenance mode disabled")
        db.commit()
        return row

    @staticmethod
    def get_snapshot(db: Session) -> MaintenanceSnapshot:
        """Cached view of the flag, reloaded after the TTL or once expired."""
        global _cache
        now = time.monotonic()
        if (
            _cache is None
            or now - _cache.loaded_at > settings.MAINTENANCE_CACHE_TTL_SECONDS
            or _cache.expired
        ):
            row = MaintenanceService.get_status(db)
            _cache = MaintenanceSnapshot(
                is_enabled=row.is_enabled,
                message=row.message,
                end_time=row.end_time,
                loaded_at=now,
            )
        return _cache

    @staticmethod
    def update_maintenance(
        db: Session,
        admin_id: int,
        is_enabled: bool,
        message: str | None = None,
        end_time: datetime | None = None,
    ) -> db_models.MaintenanceMode:
        """
        Turn maintenance mode on or off.

        Args:
            db: Database session
            admin_id: Acting admin
            is_enabled: New state
            message: Message shown to blocked users
            end_time: Optional automatic end of the window

        Returns:
            Updated row
        """
        with atomic(db):
            row = ConfigRepository(db).get_or_create_maintenance()
            row.is_enabled = is_enabled
            row.message = message
            row.end_time = ensure_utc(end_time) if end_time is not None else None
            row.updated_by_id = admin_id

        clear_maintenance_cache()
        db.refresh(row)
        logger.warning(
            f"Maintenance mode {'enabled' if is_enabled else 'disabled'} by admin {admin_id}"
        )
        return row
