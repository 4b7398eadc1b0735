"""Initialize the database with default tags, the settings rows and an admin user."""

from loguru import logger

import repositories.db_models  # noqa: F401
from authentication.auth import get_password_hash
from helpers.slug import slugify
from models.config import settings
from repositories.config_repository import ConfigRepository
from repositories.database import Base, engine, session_scope
from repositories.db_models import Role, Tag, User
from repositories.tag_repository import TagRepository
from repositories.user_repository import UserRepository

DEFAULT_TAGS: list[dict[str, str]] = [
    {"name": "general", "description": "Anything that does not fit elsewhere"},
    {"name": "help", "description": "Questions looking for an answer"},
    {"name": "discussion", "description": "Open-ended conversations"},
    {"name": "announcements", "description": "News from the team"},
    {"name": "feedback", "description": "Suggestions about the forum itself"},
]


def seed_tags(repo: TagRepository) -> int:
    """Create the default tags that are missing. Returns how many were added."""
    created = 0
    for tag in DEFAULT_TAGS:
        if repo.get_by_name(tag["name"]) is not None:
            continue
        repo.add(
            Tag(
                name=tag["name"],
                slug=slugify(tag["name"]),
                description=tag["description"],
            )
        )
        created += 1
    return created


def seed_admin(repo: UserRepository) -> bool:
    """Create the admin account from ADMIN_EMAIL/ADMIN_PASSWORD if both are set."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin account")
        return False

    email = settings.ADMIN_EMAIL.lower()
    if repo.get_by_email(email) is not None:
        return False

    admin = User(
        email=email,
        username="admin",
        display_name="Administrator",
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
    )
    repo.db.add(admin)
    repo.db.flush()
    repo.set_roles(admin, {Role.ADMIN, Role.MODERATOR})
    return True


def init_db() -> None:
    """Initialize the database with default data."""
    Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        tags_created = seed_tags(TagRepository(db))
        if tags_created:
            logger.info(f"[OK] {tags_created} default tags created")

        config = ConfigRepository(db)
        config.get_or_create_settings()
        config.get_or_create_maintenance()

        if seed_admin(UserRepository(db)):
            logger.info(f"[OK] Admin user created: {settings.ADMIN_EMAIL}")
            logger.warning("Change the admin password in production!")

    logger.info("[OK] Database initialization complete")


if __name__ == "__main__":
    init_db()
