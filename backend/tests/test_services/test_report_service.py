"""Tests for ReportService."""

import pytest

from helpers.pagination import PageParams
from models.exceptions import (
    CannotReportOwnContentException,
    CommentNotFoundException,
    DuplicateReportException,
    PostNotFoundException,
    ValidationException,
)
from repositories.db_models import ReportReason, ReportStatus, TargetType
from services.report_service import ReportService


class TestCreateReport:
    """Filing reports."""

    def test_report_post(self, test_post, other_user, report_factory) -> None:
        """A new report starts PENDING and points at its post."""
        report = report_factory(other_user, post=test_post)

        assert report.status == ReportStatus.PENDING
        assert report.target_type == TargetType.POST
        assert report.target_id == test_post.id

    def test_report_comment(self, test_comment, test_user, report_factory) -> None:
        report = report_factory(test_user, comment=test_comment)

        assert report.target_type == TargetType.COMMENT
        assert report.target_id == test_comment.id

    def test_duplicate_report_rejected(self, test_post, other_user, report_factory) -> None:
        """One report per user and target."""
        report_factory(other_user, post=test_post)

        with pytest.raises(DuplicateReportException):
            report_factory(other_user, post=test_post, reason=ReportReason.OFFENSIVE)

    def test_cannot_report_own_content(self, test_post, test_user, report_factory) -> None:
        with pytest.raises(CannotReportOwnContentException):
            report_factory(test_user, post=test_post)

    def test_missing_targets(self, db_session, other_user) -> None:
        """Unknown targets are NOT_FOUND."""
        with pytest.raises(PostNotFoundException):
            ReportService.create_report(
                db_session, other_user.id, ReportReason.SPAM, post_id=9999
            )
        with pytest.raises(CommentNotFoundException):
            ReportService.create_report(
                db_session, other_user.id, ReportReason.SPAM, comment_id=9999
            )

    def test_exactly_one_target(self, db_session, test_post, test_comment, user_factory) -> None:
        """Both or neither target is a validation error."""
        carol = user_factory("carol")
        with pytest.raises(ValidationException):
            ReportService.create_report(db_session, carol.id, ReportReason.SPAM)
        with pytest.raises(ValidationException):
            ReportService.create_report(
                db_session,
                carol.id,
                ReportReason.SPAM,
                post_id=test_post.id,
                comment_id=test_comment.id,
            )

    def test_description_is_stripped_of_html(self, db_session, test_post, other_user) -> None:
        report = ReportService.create_report(
            db_session,
            other_user.id,
            ReportReason.OTHER,
            description="<b>Clearly</b> copied from elsewhere",
            post_id=test_post.id,
        )
        assert report.description == "Clearly copied from elsewhere"


class TestReportStatus:
    """Listing and status changes."""

    def test_final_status_stamps_resolver(
        self, db_session, test_post, other_user, moderator_user, report_factory
    ) -> None:
        """RESOLVED records who closed the report and when."""
        report = report_factory(other_user, post=test_post)

        updated = ReportService.update_report_status(
            db_session, report.id, ReportStatus.RESOLVED, moderator_user.id, "Removed"
        )

        assert updated.status == ReportStatus.RESOLVED
        assert updated.resolved_by_id == moderator_user.id
        assert updated.resolved_at is not None
        assert updated.resolver_notes == "Removed"

    def test_reopening_clears_stamp(
        self, db_session, test_post, other_user, moderator_user, report_factory
    ) -> None:
        """Back to PENDING forgets the resolver."""
        report = report_factory(other_user, post=test_post)
        ReportService.update_report_status(
            db_session, report.id, ReportStatus.REJECTED, moderator_user.id
        )

        reopened = ReportService.update_report_status(
            db_session, report.id, ReportStatus.PENDING, moderator_user.id
        )

        assert reopened.resolved_by_id is None
        assert reopened.resolved_at is None

    def test_filter_by_status(
        self, db_session, test_post, other_user, user_factory, moderator_user, report_factory
    ) -> None:
        first = report_factory(other_user, post=test_post)
        report_factory(user_factory("carol"), post=test_post)
        ReportService.update_report_status(
            db_session, first.id, ReportStatus.RESOLVED, moderator_user.id
        )

        pending, total = ReportService.get_reports(
            db_session, PageParams(page=1, limit=20), status=ReportStatus.PENDING
        )

        assert total == 1
        assert pending[0].id != first.id

    def test_my_reports(self, db_session, test_post, other_user, user_factory, report_factory) -> None:
        """Users only see their own reports."""
        report_factory(other_user, post=test_post)
        report_factory(user_factory("carol"), post=test_post)

        mine, total = ReportService.get_my_reports(
            db_session, other_user.id, PageParams(page=1, limit=20)
        )

        assert total == 1
        assert mine[0].reporter_id == other_user.id
