"""
Admin endpoints: users, content listings, platform statistics, maintenance
mode and site settings. All routes require ADMIN.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.permissions import require_admin
from helpers.pagination import Pagination
from helpers.responses import paginated, success
from repositories.database import get_db
from repositories.db_models import Role
from services import AdminService, MaintenanceService, SettingsService, UserService

router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================================================
# Users
# ============================================================================


@router.get("/users")
def list_users(
    params: Pagination,
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[Role] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    users, total = AdminService.list_users(
        db, params, search=search, role=role, is_active=is_active
    )
    return paginated([schemas.User.model_validate(u) for u in users], params, total)


@router.put("/users/{user_id}/roles")
def update_user_roles(
    user_id: int,
    update: schemas.RolesUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    """Replace a user's roles. USER is always kept."""
    user = AdminService.update_user_roles(db, current_user.id, user_id, update.roles)
    return success(schemas.User.model_validate(user))


@router.post("/users/{user_id}/ban")
def ban_user(
    user_id: int,
    body: Optional[schemas.BanRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    user = AdminService.ban_user(
        db, current_user.id, user_id, body.reason if body else None
    )
    return success(schemas.User.model_validate(user))


@router.post("/users/{user_id}/unban")
def unban_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    user = AdminService.unban_user(db, current_user.id, user_id)
    return success(schemas.User.model_validate(user))


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    """Delete a user and all their content."""
    AdminService.delete_user(db, current_user.id, user_id)
    return success({"message": "User deleted"})


@router.post("/users/{user_id}/reactivate")
def reactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    """Turn a self-deactivated account back on."""
    user = UserService.reactivate_account(db, user_id)
    return success(schemas.User.model_validate(user))


# ============================================================================
# Statistics
# ============================================================================


@router.get("/statistics")
def get_statistics(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    return success(AdminService.get_statistics(db))


@router.get("/recent-posts")
def get_recent_posts(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    posts = AdminService.get_recent_posts(db, limit)
    return success([schemas.Post.model_validate(p) for p in posts])


@router.get("/recent-users")
def get_recent_users(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    users = AdminService.get_recent_users(db, limit)
    return success([schemas.User.model_validate(u) for u in users])

# ============================================================================
# Maintenance mode and site settings
# ============================================================================


@router.get("/maintenance")
def get_maintenance(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    row = MaintenanceService.get_status(db)
    return success(schemas.MaintenanceStatus.model_validate(row))


@router.put("/maintenance")
def update_maintenance(
    update: schemas.MaintenanceUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    row = MaintenanceService.update_maintenance(
        db,
        current_user.id,
        is_enabled=update.is_enabled,
        message=update.message,
        end_time=update.end_time,
    )
    return success(schemas.MaintenanceStatus.model_validate(row))


@router.get("/settings")
def get_settings(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    return success(schemas.SiteSettings.model_validate(SettingsService.get_settings(db)))


@router.put("/settings")
def update_settings(
    update: schemas.SiteSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    row = SettingsService.update_settings(
        db, current_user.id, update.model_dump(exclude_unset=True)
    )
    return success(schemas.SiteSettings.model_validate(row))


# ============================================================================
# Content
# ============================================================================


@router.get("/posts")
def list_posts(
    params: Pagination,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    """All posts, hidden ones included."""
    posts, total = AdminService.list_all_posts(db, params)
    return paginated([schemas.Post.model_validate(p) for p in posts], params, total)


@router.get("/comments")
def list_comments(
    params: Pagination,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    comments, total = AdminService.list_all_comments(db, params)
    return paginated(
        [schemas.CommentWithPost.model_validate(c) for c in comments], params, total
    )




@router.delete("/posts/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    action = AdminService.delete_post(db, current_user.id, post_id)
    return success(schemas.ModeratorAction.model_validate(action))


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    action = AdminService.delete_comment(db, current_user.id, comment_id)
    return success(schemas.ModeratorAction.model_validate(action))
