"""Authentication router endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import limiter
from helpers.responses import success
from models.config import settings
from repositories.database import get_db
from services import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def register(
    request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)
) -> dict[str, Any]:
    """
    Register a new user.

    Rate limited per client address.
    """
    created = UserService.register_user(db, user)
    return success(schemas.User.model_validate(created))


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    Login with email (sent as `username`) and password.

    Domain exceptions are caught by centralized exception handlers.
    """
    return success(UserService.login(db, form_data.username, form_data.password))


@router.get("/me")
async def read_users_me(
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    """Get current user with level progress."""
    progress = UserService.level_progress(current_user)
    data = schemas.User.model_validate(current_user).model_dump(mode="json")
    data["progress"] = progress.model_dump(mode="json")
    return success(data)


@router.put("/profile")
def update_profile(
    profile_update: schemas.UserProfileUpdate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Update display name and bio."""
    user = UserService.update_profile(db, current_user, profile_update)
    return success(schemas.User.model_validate(user))
