"""
Alembic environment for the forum schema.

The database URL comes from `models.config.settings`, never from alembic.ini,
so migrations always target the same database as the API. SQLite needs batch
mode for ALTER TABLE, which is switched on automatically.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

import repositories.db_models  # noqa: F401
from models.config import settings
from repositories.database import Base, engine

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

IS_SQLITE = settings.DATABASE_URL.startswith("sqlite")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=IS_SQLITE,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching the database."""
    _configure(url=settings.DATABASE_URL, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection: Connection
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
