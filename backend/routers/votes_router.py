from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.responses import success
from repositories.database import get_db
from services import VoteService

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("")
def vote(
    vote: schemas.VoteCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    """
    Vote on a post or a comment.

    - value: "UP" or "DOWN"; sending the current vote again removes it
    - exactly one of post_id / comment_id
    """
    outcome = VoteService.vote(
        db,
        user_id=current_user.id,
        value=vote.value,
        post_id=vote.post_id,
        comment_id=vote.comment_id,
    )
    return success(schemas.VoteResult(votes=outcome.votes, user_vote=outcome.user_vote))
