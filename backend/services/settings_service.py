"""
Site-wide settings stored in a single database row.
"""

from typing import Any

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.sanitization import sanitize_plain_text
from repositories.config_repository import ConfigRepository
from repositories.database import atomic


class SettingsService:
    """Service for the SiteSettings singleton."""

    @staticmethod
    def get_settings(db: Session) -> db_models.SiteSettings:
        """Return the settings row, creating it with defaults on first read."""
        repo = ConfigRepository(db)
        row = repo.get_or_create_settings()
        db.commit()
        return row

    @staticmethod
    def registration_open(db: Session) -> bool:
        return SettingsService.get_settings(db).allow_registration

    @staticmethod
    def update_settings(
        db: Session, admin_id: int, changes: dict[str, Any]
    ) -> db_models.SiteSettings:
        """
        Apply a partial update.

        Args:
            db: Database session
            admin_id: Acting admin, recorded as updated_by_id
            changes: Field values to set; None values are ignored

        Returns:
            Updated settings row
        """
        with atomic(db):
            row = ConfigRepository(db).get_or_create_settings()
            for field, value in changes.items():
                if value is None:
                    continue
                if field in ("site_name", "site_description"):
                    value = sanitize_plain_text(value)
                setattr(row, field, value)
            row.updated_by_id = admin_id

        db.refresh(row)
        logger.info(
            f"Admin {admin_id} updated site settings: "
            f"{sorted(k for k, v in changes.items() if v is not None)}"
        )
        return row
