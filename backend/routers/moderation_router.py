"""
Router for direct moderation endpoints (hide/lock toggles and the action log).
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.permissions import require_staff
from helpers.pagination import Pagination
from helpers.responses import paginated, success
from repositories.database import get_db
from repositories.db_models import ModeratorActionType
from services import ModerationService

router = APIRouter(prefix="/moderation", tags=["moderation"])

ReasonBody = Optional[schemas.ModerationReason]


def _reason(body: ReasonBody) -> Optional[str]:
    return body.reason if body is not None else None


# ============================================================================
# Posts
# ============================================================================


@router.post("/posts/{post_id}/hide")
def hide_post(
    post_id: int,
    body: ReasonBody = Body(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    action = ModerationService.hide_post(db, post_id, current_user.id, _reason(body))
    return success(schemas.ModeratorAction.model_validate(action))


@router.post("/posts/{post_id}/unhide")
def unhide_post(
    post_id: int,
    body: ReasonBody = Body(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    action = ModerationService.unhide_post(db, post_id, current_user.id, _reason(body))
    return success(schemas.ModeratorAction.model_validate(action))


@router.post("/posts/{post_id}/lock")
def lock_post(
    post_id: int,
    body: ReasonBody = Body(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    action = ModerationService.lock_post(db, post_id, current_user.id, _reason(body))
    return success(schemas.ModeratorAction.model_validate(action))


@router.post("/posts/{post_id}/unlock")
def unlock_post(
    post_id: int,
    body: ReasonBody = Body(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    action = ModerationService.unlock_post(db, post_id, current_user.id, _reason(body))
    return success(schemas.ModeratorAction.model_validate(action))


# ============================================================================
# Comments
# ============================================================================


@router.post("/comments/{comment_id}/hide")
def hide_comment(
    comment_id: int,
    body: ReasonBody = Body(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    action = ModerationService.hide_comment(
        db, comment_id, current_user.id, _reason(body)
    )
    return success(schemas.ModeratorAction.model_validate(action))


@router.post("/comments/{comment_id}/unhide")
def unhide_comment(
    comment_id: int,
    body: ReasonBody = Body(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    action = ModerationService.unhide_comment(
        db, comment_id, current_user.id, _reason(body)
    )
    return success(schemas.ModeratorAction.model_validate(action))


# ============================================================================
# Action log
# ============================================================================


@router.get("/actions")
def get_moderation_actions(
    params: Pagination,
    action_type: Optional[ModeratorActionType] = Query(None),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    """All moderator actions, newest first."""
    actions, total = ModerationService.get_moderation_actions(
        db, params, action_type=action_type
    )
    return paginated(
        [schemas.ModeratorAction.model_validate(a) for a in actions], params, total
    )
