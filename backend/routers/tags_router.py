"""Tag router endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.permissions import require_admin
from helpers.pagination import Pagination
from helpers.responses import paginated, success
from repositories.database import get_db
from services import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("")
def list_tags(
    params: Pagination,
    sort: str = Query("popular", description="popular or alphabetical"),
    search: Optional[str] = Query(None, max_length=30),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    tags, total = TagService.list_tags(db, params, sort=sort, search=search)
    return paginated([schemas.Tag.model_validate(tag) for tag in tags], params, total)


@router.get("/{slug}")
def get_tag(slug: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    return success(schemas.Tag.model_validate(TagService.get_tag_by_slug(db, slug)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_tag(
    tag: schemas.TagCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    """Create a tag (admin only)."""
    created = TagService.create_tag(db, tag.name, tag.description)
    return success(schemas.Tag.model_validate(created))


@router.put("/{tag_id}")
def update_tag(
    tag_id: int,
    update: schemas.TagUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    tag = TagService.update_tag(db, tag_id, update.name, update.description)
    return success(schemas.Tag.model_validate(tag))


@router.delete("/{tag_id}")
def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_admin),
) -> dict[str, Any]:
    """Delete a tag that no post uses (admin only)."""
    TagService.delete_tag(db, tag_id)
    return success({"message": "Tag deleted"})
