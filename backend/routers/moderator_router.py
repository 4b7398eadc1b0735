"""
Moderator workspace endpoints: report queue, dashboard and actions.

All routes require MODERATOR or ADMIN.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.permissions import require_staff
from helpers.pagination import Pagination, build_meta
from helpers.responses import paginated, success
from repositories.database import get_db
from repositories.db_models import ModeratorActionType, TargetType
from services import ModeratorService

router = APIRouter(prefix="/moderator", tags=["moderator"])


@router.get("/queue")
def get_queue(
    params: Pagination,
    priority: Optional[str] = Query(None, description="urgent, high, medium or low"),
    target_type: Optional[TargetType] = Query(None, alias="type"),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    """Reported content grouped per target, most urgent first."""
    items, total = ModeratorService.get_queue(
        db, params, priority=priority, target_type=target_type
    )
    return paginated(items, params, total)


@router.get("/queue/stats")
def get_queue_stats(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    return success(ModeratorService.get_queue_stats(db))


@router.get("/queue/recent")
def get_recent_queue_items(
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    """Newest reported targets for the dashboard preview."""
    return success(ModeratorService.get_recent_queue_items(db, limit))


@router.get("/posts/reported")
def get_reported_posts(
    params: Pagination,
    search: Optional[str] = Query(None, max_length=100),
    visibility: Optional[str] = Query(
        None, alias="status", description="visible, hidden or all"
    ),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    posts, total = ModeratorService.get_reported_posts(
        db, params, search=search, status=visibility
    )
    return paginated(posts, params, total)


@router.get("/comments/reported")
def get_reported_comments(
    params: Pagination,
    search: Optional[str] = Query(None, max_length=100),
    visibility: Optional[str] = Query(
        None, alias="status", description="visible, hidden or all"
    ),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    comments, total = ModeratorService.get_reported_comments(
        db, params, search=search, status=visibility
    )
    return paginated(comments, params, total)


@router.get("/dashboard")
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    return success(ModeratorService.get_dashboard_stats(db, current_user.id))


@router.post("/actions", status_code=status.HTTP_201_CREATED)
def take_action(
    action: schemas.TakeAction,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    """
    Apply a moderation action to a post or comment.

    Pending reports against the target are resolved in the same transaction.
    """
    record = ModeratorService.take_action(
        db,
        moderator_id=current_user.id,
        target_id=action.target_id,
        target_type=action.target_type,
        action_type=action.action_type,
        reason=action.reason,
        notes=action.notes,
    )
    return success(schemas.ModeratorAction.model_validate(record))


@router.post("/reports/{report_id}/resolve")
def resolve_report(
    report_id: int,
    resolution: schemas.ResolveReport,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    report = ModeratorService.resolve_report(
        db, report_id, current_user.id, resolution.action, resolution.notes
    )
    return success(schemas.Report.model_validate(report))


@router.get("/history")
def get_history(
    params: Pagination,
    action_type: Optional[ModeratorActionType] = Query(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    """The requesting moderator's own actions with per-type totals."""
    actions, total, stats = ModeratorService.get_moderator_history(
        db, current_user.id, params, action_type=action_type
    )
    return success(
        {
            "actions": [schemas.ModeratorAction.model_validate(a) for a in actions],
            "stats": stats,
        },
        meta=build_meta(params, total),
    )
