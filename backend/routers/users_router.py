from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import Pagination
from helpers.responses import paginated, success
from repositories.database import get_db
from services import UserService

router = APIRouter(prefix="/users", tags=["users"])


# ============================================================================
# Own account
# ============================================================================


@router.get("/me/preferences/notifications")
def get_notification_preferences(
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    return success(UserService.get_notification_preferences(current_user))


@router.patch("/me/preferences/notifications")
def update_notification_preferences(
    update: schemas.NotificationPreferencesUpdate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return success(
        UserService.update_notification_preferences(db, current_user, update)
    )


@router.post("/me/change-password")
def change_password(
    body: schemas.PasswordChange,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    UserService.change_password(
        db, current_user, body.current_password, body.new_password
    )
    return success({"message": "Password changed"})


@router.delete("/me")
def delete_account(
    body: schemas.AccountDelete,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Deactivate the caller's account after confirming the password."""
    UserService.delete_account(db, current_user, body.password)
    return success({"message": "Account deactivated"})


# ============================================================================
# Public
# ============================================================================


@router.get("/{username}")
def get_public_profile(username: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Public profile with reputation level progress."""
    return success(UserService.get_public_profile(db, username))


@router.get("/{username}/posts")
def get_user_posts(
    username: str, params: Pagination, db: Session = Depends(get_db)
) -> dict[str, Any]:
    posts, total = UserService.get_user_posts(db, username, params)
    return paginated([schemas.Post.model_validate(p) for p in posts], params, total)
