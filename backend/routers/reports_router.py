"""Content report endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from authentication.permissions import require_staff
from helpers.pagination import Pagination
from helpers.rate_limiter import limiter
from helpers.responses import paginated, success
from models.config import settings
from repositories.database import get_db
from repositories.db_models import ReportStatus
from services import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_REPORTS)
def create_report(
    request: Request,
    report: schemas.ReportCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    """
    Report a post or a comment.

    One report per user and target. Rate limited per client address.
    """
    created = ReportService.create_report(
        db,
        reporter_id=current_user.id,
        reason=report.reason,
        description=report.description,
        post_id=report.post_id,
        comment_id=report.comment_id,
    )
    return success(schemas.Report.model_validate(created))


@router.get("/mine")
def get_my_reports(
    params: Pagination,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, Any]:
    reports, total = ReportService.get_my_reports(db, current_user.id, params)
    return paginated(
        [schemas.Report.model_validate(report) for report in reports], params, total
    )


@router.get("")
def get_reports(
    params: Pagination,
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    """List reports (staff only)."""
    reports, total = ReportService.get_reports(db, params, status=report_status)
    return paginated(
        [schemas.Report.model_validate(report) for report in reports], params, total
    )


@router.patch("/{report_id}")
def update_report_status(
    report_id: int,
    update: schemas.ReportStatusUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(require_staff),
) -> dict[str, Any]:
    report = ReportService.update_report_status(
        db, report_id, update.status, current_user.id, update.resolution
    )
    return success(schemas.Report.model_validate(report))
