"""Comment router endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import Pagination
from helpers.responses import paginated, success
from repositories.database import get_db
from services import CommentService

router = APIRouter(tags=["comments"])


@router.get("/posts/{post_id}/comments")
def get_comments(
    post_id: int,
    params: Pagination,
    db: Session = Depends(get_db),
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
) -> dict[str, Any]:
    """Top-level comments (accepted answer first) with their replies."""
    comments, total = CommentService.get_comments(
        db, post_id, params, viewer=current_user
    )
    return paginated(comments, params, total)


@router.post("/posts/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: int,
    comment: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    created = CommentService.create_comment(
        db, post_id, current_user.id, comment.content, parent_id=comment.parent_id
    )
    return success(schemas.Comment.model_validate(created))


@router.put("/comments/{comment_id}")
def update_comment(
    comment_id: int,
    update: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    comment = CommentService.update_comment(db, comment_id, current_user, update.content)
    return success(schemas.Comment.model_validate(comment))


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    """Delete a comment and its replies (author, MODERATOR or ADMIN)."""
    CommentService.delete_comment(db, comment_id, current_user)
    return success({"message": "Comment deleted"})


@router.post("/comments/{comment_id}/accept")
def accept_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    """Mark a comment as the accepted answer (post author only)."""
    comment = CommentService.accept_comment(db, comment_id, current_user.id)
    return success(schemas.Comment.model_validate(comment))


@router.delete("/comments/{comment_id}/accept")
def unaccept_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    comment = CommentService.unaccept_comment(db, comment_id, current_user.id)
    return success(schemas.Comment.model_validate(comment))
