"""Post router endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import Pagination
from helpers.responses import paginated, success
from repositories.database import get_db
from services import PostService, VoteService

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("")
def list_posts(
    params: Pagination,
    sort: str = Query("recent", description="recent, votes or unanswered"),
    tag: Optional[str] = Query(None, description="Tag slug"),
    author: Optional[str] = Query(None, description="Author username"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """List visible posts."""
    posts, total = PostService.list_posts(db, params, sort=sort, tag=tag, author=author)
    return paginated(
        [schemas.Post.model_validate(post) for post in posts], params, total
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    post: schemas.PostCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    created = PostService.create_post(
        db, current_user.id, post.title, post.content, post.tag_ids
    )
    return success(schemas.Post.model_validate(created))


@router.get("/{slug}")
def get_post(
    slug: str,
    db: Session = Depends(get_db),
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
) -> dict[str, Any]:
    """Get a post by slug; the view is counted and the caller's vote included."""
    post = PostService.get_post_by_slug(db, slug, viewer=current_user)
    detail = schemas.PostDetail.model_validate(post)
    if current_user is not None:
        detail.user_vote = VoteService.get_user_vote(db, current_user.id, post_id=post.id)
    return success(detail)


@router.put("/{post_id}")
def update_post(
    post_id: int,
    update: schemas.PostUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    """Edit a post (author or ADMIN)."""
    post = PostService.update_post(
        db,
        post_id,
        current_user,
        title=update.title,
        content=update.content,
        tag_ids=update.tag_ids,
    )
    return success(schemas.Post.model_validate(post))


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    """Delete a post (author or ADMIN)."""
    PostService.delete_post(db, post_id, current_user)
    return success({"message": "Post deleted"})
