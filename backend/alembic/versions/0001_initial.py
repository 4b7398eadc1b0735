"""initial forum schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000

Users and roles, tags, posts, comments, votes, reports, moderator actions,
notifications, and the maintenance and site settings singletons.
"""

from alembic import op

import repositories.db_models  # noqa: F401
from repositories.database import Base

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    """Drop every forum table. All data is lost."""
    Base.metadata.drop_all(bind=op.get_bind())
