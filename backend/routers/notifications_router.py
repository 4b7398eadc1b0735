"""Notification inbox endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import Pagination
from helpers.responses import paginated, success
from repositories.database import get_db
from services import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def get_notifications(
    params: Pagination,
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    notifications, total = NotificationService.get_notifications(
        db, current_user.id, params, unread_only=unread_only
    )
    return paginated(
        [schemas.Notification.model_validate(n) for n in notifications], params, total
    )


@router.get("/unread-count")
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    return success({"count": NotificationService.get_unread_count(db, current_user.id)})


@router.patch("/read-all")
def mark_all_as_read(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    updated = NotificationService.mark_all_as_read(db, current_user.id)
    return success({"updated": updated})


@router.patch("/{notification_id}/read")
def mark_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    notification = NotificationService.mark_as_read(db, notification_id, current_user.id)
    return success(schemas.Notification.model_validate(notification))
