"""
Service for content report business logic.
"""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from helpers.pagination import PageParams
from helpers.sanitization import sanitize_plain_text
from helpers.time_utils import utc_now
from models.exceptions import (
    CannotReportOwnContentException,
    CommentNotFoundException,
    DuplicateReportException,
    PostNotFoundException,
    ReportNotFoundException,
    ValidationException,
)
from repositories.base import paginate
from repositories.comment_repository import CommentRepository
from repositories.db_models import Report, ReportReason, ReportStatus
from repositories.post_repository import PostRepository
from repositories.report_repository import ReportRepository

# Statuses that close a report and stamp its resolver
FINAL_STATUSES = (ReportStatus.RESOLVED, ReportStatus.REJECTED)


class ReportService:
    """Service for content report business logic."""

    @staticmethod
    def _get_target_author_id(
        db: Session, post_id: int | None, comment_id: int | None
    ) -> int:
        """
        Verify the reported target exists and return its author.

        Raises:
            PostNotFoundException: If the post does not exist
            CommentNotFoundException: If the comment does not exist
        """
        if post_id is not None:
            post = PostRepository(db).get_by_id(post_id)
            if post is None:
                raise PostNotFoundException(f"Post with ID {post_id} not found")
            return post.author_id

        comment = CommentRepository(db).get_by_id(comment_id)  # type: ignore[arg-type]
        if comment is None:
            raise CommentNotFoundException(f"Comment with ID {comment_id} not found")
        return comment.author_id

    @staticmethod
    def create_report(
        db: Session,
        reporter_id: int,
        reason: ReportReason,
        description: str | None = None,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> Report:
        """
        Report a post or a comment.

        Args:
            db: Database session
            reporter_id: ID of the reporting user
            reason: Reason for the report
            description: Optional free text
            post_id: Reported post (mutually exclusive with comment_id)
            comment_id: Reported comment

        Returns:
            Created report

        Raises:
            ValidationException: If not exactly one target is given
            PostNotFoundException / CommentNotFoundException: If the target is missing
            CannotReportOwnContentException: If the reporter authored the target
            DuplicateReportException: If the reporter already reported this target
        """
        if (post_id is None) == (comment_id is None):
            raise ValidationException("Provide exactly one of post_id or comment_id")

        report_repo = ReportRepository(db)

        author_id = ReportService._get_target_author_id(db, post_id, comment_id)
        if author_id == reporter_id:
            raise CannotReportOwnContentException()

        if report_repo.get_by_reporter_and_target(reporter_id, post_id, comment_id):
            raise DuplicateReportException()

        report = Report(
            reporter_id=reporter_id,
            reason=reason,
            description=sanitize_plain_text(description),
            post_id=post_id,
            comment_id=comment_id,
        )
        try:
            report = report_repo.save(report)
        except IntegrityError:
            report_repo.rollback()
            raise DuplicateReportException()

        logger.info(
            f"Report {report.id} ({reason.value}) on "
            f"{report.target_type.value.lower()} {report.target_id} by user {reporter_id}"
        )
        return report

    @staticmethod
    def get_reports(
        db: Session, params: PageParams, status: ReportStatus | None = None
    ) -> tuple[list[Report], int]:
        return paginate(
            ReportRepository(db).list_query(status=status), params.page, params.limit
        )

    @staticmethod
    def get_my_reports(
        db: Session, reporter_id: int, params: PageParams
    ) -> tuple[list[Report], int]:
        return paginate(
            ReportRepository(db).list_query(reporter_id=reporter_id),
            params.page,
            params.limit,
        )

    @staticmethod
    def get_report_or_404(db: Session, report_id: int) -> Report:
        report = ReportRepository(db).get_by_id(report_id)
        if report is None:
            raise ReportNotFoundException(f"Report with ID {report_id} not found")
        return report

    @staticmethod
    def update_report_status(
        db: Session,
        report_id: int,
        status: ReportStatus,
        moderator_id: int,
        resolution: str | None = None,
    ) -> Report:
        """
        Move a single report to a new status.

        RESOLVED and REJECTED stamp the resolver, the time and the notes;
        moving back to PENDING or REVIEWING clears them.

        Args:
            db: Database session
            report_id: Report ID
            status: New status
            moderator_id: Acting moderator
            resolution: Resolver notes

        Returns:
            Updated report

        Raises:
            ReportNotFoundException: If the report does not exist
        """
        report = ReportService.get_report_or_404(db, report_id)
        report.status = status

        if status in FINAL_STATUSES:
            report.resolved_by_id = moderator_id
            report.resolved_at = utc_now()
            report.resolver_notes = resolution
        else:
            report.resolved_by_id = None
            report.resolved_at = None
            report.resolver_notes = None

        report = ReportRepository(db).save(report)
        logger.info(
            f"Report {report_id} set to {status.value} by moderator {moderator_id}"
        )
        return report
