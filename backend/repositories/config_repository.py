"""
Repository for the single-row platform configuration tables.
"""

from sqlalchemy.orm import Session

from repositories.db_models import MaintenanceMode, SiteSettings

SINGLETON_ID = 1


class ConfigRepository:
    """Upsert-on-read access to MaintenanceMode and SiteSettings."""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create_maintenance(self) -> MaintenanceMode:
        """
        Return the maintenance row, creating a disabled one if missing.

        Returns:
            The single MaintenanceMode row
        """
        row = self.db.get(MaintenanceMode, SINGLETON_ID)
        if row is None:
            row = MaintenanceMode(id=SINGLETON_ID, is_enabled=False)
            self.db.add(row)
            self.db.flush()
        return row

    def get_or_create_settings(self) -> SiteSettings:
        """
        Return the settings row, creating one with defaults if missing.

        Returns:
            The single SiteSettings row
        """
        row = self.db.get(SiteSettings, SINGLETON_ID)
        if row is None:
            row = SiteSettings(id=SINGLETON_ID)
            self.db.add(row)
            self.db.flush()
        return row
