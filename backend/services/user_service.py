"""
User service for registration, login, profiles and account self-service.
"""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PageParams
from helpers.sanitization import sanitize_plain_text
from models.exceptions import (
    InactiveUserException,
    InvalidCredentialsException,
    PermissionDeniedException,
    UserAlreadyExistsException,
    UserNotFoundException,
    ValidationException,
)
from repositories.base import paginate
from repositories.comment_repository import CommentRepository
from repositories.db_models import Role
from repositories.post_repository import PostRepository
from repositories.user_repository import UserRepository
from services.reputation_service import ReputationService
from services.settings_service import SettingsService


class UserService:
    """Service for user-related business logic."""

    @staticmethod
    def register_user(db: Session, user_data: schemas.UserCreate) -> db_models.User:
        """
        Register a new user.

        Args:
            db: Database session
            user_data: Registration payload

        Returns:
            Created user

        Raises:
            PermissionDeniedException: If registration is closed
            UserAlreadyExistsException: If the email or username is taken
        """
        if not SettingsService.registration_open(db):
            raise PermissionDeniedException("Registration is currently closed")

        user_repo = UserRepository(db)
        email = user_data.email.lower()
        if user_repo.get_by_email_or_username(email, user_data.username):
            raise UserAlreadyExistsException("Email or username already registered")

        user = db_models.User(
            email=email,
            username=user_data.username,
            display_name=sanitize_plain_text(user_data.display_name)
            or user_data.username,
            hashed_password=auth.get_password_hash(user_data.password),
        )
        try:
            user = user_repo.save(user)
        except IntegrityError:
            user_repo.rollback()
            raise UserAlreadyExistsException("Email or username already registered")

        logger.info(f"User {user.id} ({user.username}) registered")
        return user

    @staticmethod
    def login(db: Session, email: str, password: str) -> schemas.Token:
        """
        Exchange credentials for a bearer token.

        Raises:
            InvalidCredentialsException: If the email or password is wrong
            InactiveUserException: If the account is banned
        """
        user = auth.authenticate_user(db, email.lower(), password)
        if user is None:
            raise InvalidCredentialsException("Incorrect email or password")
        if not user.is_active:
            raise InactiveUserException("Account has been suspended")

        token = auth.create_access_token(data={"sub": user.email})
        return schemas.Token(access_token=token, token_type="bearer")

    @staticmethod
    def update_profile(
        db: Session, user: db_models.User, update: schemas.UserProfileUpdate
    ) -> db_models.User:
        if update.display_name is not None:
            user.display_name = sanitize_plain_text(update.display_name) or user.display_name
        if update.bio is not None:
            user.bio = sanitize_plain_text(update.bio)
        return UserRepository(db).save(user)

    @staticmethod
    def level_progress(user: db_models.User) -> schemas.LevelProgress:
        return schemas.LevelProgress.model_validate(
            ReputationService.get_level_progress(user.reputation)
        )

    @staticmethod
    def get_public_profile(db: Session, username: str) -> schemas.UserPublicProfile:
        """
        Public profile with activity counts and level progress.

        Raises:
            UserNotFoundException: If no active user has this username
        """
        user = UserRepository(db).get_by_username(username)
        if user is None or not user.is_active:
            raise UserNotFoundException(f"User '{username}' not found")

        comment_repo = CommentRepository(db)
        return schemas.UserPublicProfile(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            reputation=user.reputation,
            level=user.level,
            bio=user.bio,
            created_at=user.created_at,
            post_count=PostRepository(db).count_by_author(user.id),
            comment_count=comment_repo.count_by_author(user.id),
            accepted_answers=comment_repo.count_by_author(user.id, accepted_only=True),
            progress=UserService.level_progress(user),
        )

    @staticmethod
    def get_user_posts(
        db: Session, username: str, params: PageParams
    ) -> tuple[list[db_models.Post], int]:
        """
        Visible posts of one author, newest first.

        Raises:
            UserNotFoundException: If no active user has this username
        """
        user = UserRepository(db).get_by_username(username)
        if user is None or not user.is_active:
            raise UserNotFoundException(f"User '{username}' not found")

        query = PostRepository(db).list_query(author_username=username)
        return paginate(query, params.page, params.limit)

    @staticmethod
    def change_password(
        db: Session, user: db_models.User, current_password: str, new_password: str
    ) -> None:
        """
        Replace the password after checking the current one.

        Args:
            db: Database session
            user: Account owner
            current_password: Password in use
            new_password: Replacement, must differ from the current one

        Raises:
            ValidationException: If the current password is wrong or unchanged
        """
        if not auth.verify_password(current_password, user.hashed_password):
            raise ValidationException("Current password is incorrect")
        if auth.verify_password(new_password, user.hashed_password):
            raise ValidationException("New password must differ from the current one")

        user.hashed_password = auth.get_password_hash(new_password)
        UserRepository(db).save(user)
        logger.info(f"User {user.id} changed their password")

    @staticmethod
    def delete_account(db: Session, user: db_models.User, password: str) -> None:
        """
        Deactivate the caller's own account. Content is kept.

        Raises:
            ValidationException: If the account is inactive or the password wrong
            PermissionDeniedException: If the account is an administrator
        """
        if not user.is_active:
            raise ValidationException("Account is already deactivated")
        if not auth.verify_password(password, user.hashed_password):
            raise ValidationException("Incorrect password")
        if Role.ADMIN in user.roles:
            raise PermissionDeniedException("Administrator accounts cannot be deleted")

        user.is_active = False
        UserRepository(db).save(user)
        logger.warning(f"User {user.id} ({user.username}) deactivated their account")

    @staticmethod
    def reactivate_account(db: Session, user_id: int) -> db_models.User:
        """
        Turn a deactivated account back on.

        Raises:
            UserNotFoundException: If the user does not exist
            ValidationException: If the account is already active
        """
        user_repo = UserRepository(db)
        user = user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundException(f"User with ID {user_id} not found")
        if user.is_active:
            raise ValidationException("Account is already active")

        user.is_active = True
        user = user_repo.save(user)
        logger.info(f"User {user.id} ({user.username}) reactivated")
        return user

    @staticmethod
    def get_notification_preferences(
        user: db_models.User,
    ) -> schemas.NotificationPreferences:
        return schemas.NotificationPreferences.model_validate(user)

    @staticmethod
    def update_notification_preferences(
        db: Session,
        user: db_models.User,
        update: schemas.NotificationPreferencesUpdate,
    ) -> schemas.NotificationPreferences:
        if update.notification_sound is not None:
            user.notification_sound = update.notification_sound
        if update.email_notifications is not None:
            user.email_notifications = update.email_notifications
        user = UserRepository(db).save(user)
        return schemas.NotificationPreferences.model_validate(user)
