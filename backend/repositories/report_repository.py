"""
Repository for report operations, including the grouped moderation queue.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session, contains_eager, joinedload, selectinload

from repositories.base import BaseRepository
from repositories.db_models import (
    Comment,
    Post,
    Report,
    ReportStatus,
    TargetType,
    User,
)

# Pending-report counts at which a target enters each priority bucket
URGENT_THRESHOLD = 5
HIGH_THRESHOLD = 3
MEDIUM_THRESHOLD = 2


class ReportRepository(BaseRepository[Report]):
    """Repository for report data access."""

    def __init__(self, db: Session):
        super().__init__(Report, db)

    def get_by_reporter_and_target(
        self,
        reporter_id: int,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> Report | None:
        """
        Check if a user already reported this target.

        Args:
            reporter_id: ID of the reporting user
            post_id: Reported post (mutually exclusive with comment_id)
            comment_id: Reported comment

        Returns:
            Existing report if found, None otherwise
        """
        query = self.db.query(Report).filter(Report.reporter_id == reporter_id)
        if post_id is not None:
            return query.filter(Report.post_id == post_id).first()
        return query.filter(Report.comment_id == comment_id).first()

    def list_query(
        self,
        status: ReportStatus | None = None,
        reporter_id: int | None = None,
    ) -> Query[Report]:
        query = self.db.query(Report).options(joinedload(Report.reporter))
        if status is not None:
            query = query.filter(Report.status == status)
        if reporter_id is not None:
            query = query.filter(Report.reporter_id == reporter_id)
        return query.order_by(Report.created_at.desc(), Report.id.desc())

    # ------------------------------------------------------------------
    # Moderation queue
    # ------------------------------------------------------------------

    @staticmethod
    def _priority_rank() -> Any:
        """SQL expression ranking a group: urgent=0, high=1, medium=2, low=3."""
        report_count = func.count(Report.id)
        return case(
            (report_count >= URGENT_THRESHOLD, 0),
            (report_count >= HIGH_THRESHOLD, 1),
            (report_count >= MEDIUM_THRESHOLD, 2),
            else_=3,
        )

    def _pending_groups(self, target_type: TargetType | None = None) -> Query[Any]:
        query = (
            self.db.query(
                Report.post_id,
                Report.comment_id,
                func.count(Report.id).label("report_count"),
                func.max(Report.created_at).label("last_reported_at"),
            )
            .filter(Report.status == ReportStatus.PENDING)
            .group_by(Report.post_id, Report.comment_id)
        )
        if target_type == TargetType.POST:
            query = query.filter(Report.post_id.isnot(None))
        elif target_type == TargetType.COMMENT:
            query = query.filter(Report.comment_id.isnot(None))
        return query

    def get_pending_queue(
        self,
        page: int,
        limit: int,
        priority_rank: int | None = None,
        target_type: TargetType | None = None,
    ) -> tuple[list[Any], int]:
        """
        Group every PENDING report by target and return one page of groups.

        Grouping runs over the whole PENDING set, so a target's count never
        depends on which page is requested.

        Args:
            page: 1-based page number
            limit: Page size
            priority_rank: Only groups with this rank (0=urgent ... 3=low)
            target_type: Only post or only comment targets

        Returns:
            Tuple of (rows of (post_id, comment_id, report_count,
            last_reported_at), total number of matching groups)
        """
        rank = self._priority_rank()
        query = self._pending_groups(target_type)
        if priority_rank is not None:
            query = query.having(rank == priority_rank)

        total = query.count()
        rows = (
            query.order_by(
                rank.asc(),
                func.max(Report.created_at).desc(),
                Report.post_id,
                Report.comment_id,
            )
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    def get_recent_pending_targets(self, limit: int) -> list[Any]:
        """Targets with the most recently filed pending reports."""
        return (
            self._pending_groups()
            .order_by(
                func.max(Report.created_at).desc(), Report.post_id, Report.comment_id
            )
            .limit(limit)
            .all()
        )

    def get_pending_group_counts(self) -> list[int]:
        """Pending report count of every reported target."""
        return [row.report_count for row in self._pending_groups().all()]

    def get_latest_pending_reason(
        self, post_ids: list[int], comment_ids: list[int]
    ) -> dict[tuple[TargetType, int], Report]:
        """
        Most recent PENDING report for each of the given targets.

        Args:
            post_ids: Post targets
            comment_ids: Comment targets

        Returns:
            Mapping of (target type, target id) to its newest pending report
        """
        latest: dict[tuple[TargetType, int], Report] = {}
        if not post_ids and not comment_ids:
            return latest

        reports = (
            self.db.query(Report)
            .filter(
                Report.status == ReportStatus.PENDING,
                (Report.post_id.in_(post_ids)) | (Report.comment_id.in_(comment_ids)),
            )
            .order_by(Report.created_at.desc(), Report.id.desc())
            .all()
        )
        for report in reports:
            latest.setdefault((report.target_type, report.target_id), report)
        return latest

    def resolve_pending_for_target(
        self,
        target_type: TargetType,
        target_id: int,
        resolver_id: int,
        notes: str | None,
        status: ReportStatus = ReportStatus.RESOLVED,
    ) -> int:
        """
        Bulk-transition every PENDING report against a target.

        Args:
            target_type: POST or COMMENT
            target_id: Target ID
            resolver_id: Moderator stamping the reports
            notes: Resolver notes copied onto every report
            status: Final status (RESOLVED or REJECTED)

        Returns:
            Number of reports updated (0 when another moderator got there first)
        """
        column = Report.post_id if target_type == TargetType.POST else Report.comment_id
        return (
            self.db.query(Report)
            .filter(column == target_id, Report.status == ReportStatus.PENDING)
            .update(
                {
                    Report.status: status,
                    Report.resolved_by_id: resolver_id,
                    Report.resolved_at: datetime.now(timezone.utc),
                    Report.resolver_notes: notes,
                },
                synchronize_session=False,
            )
        )

    # ------------------------------------------------------------------
    # Reported content listings
    # ------------------------------------------------------------------

    def _pending_counts(self, column: Any) -> Any:
        return (
            self.db.query(
                column.label("target_id"), func.count(Report.id).label("report_count")
            )
            .filter(Report.status == ReportStatus.PENDING, column.isnot(None))
            .group_by(column)
            .subquery()
        )

    def reported_posts_query(
        self, search: str | None = None, is_hidden: bool | None = None
    ) -> Query[Any]:
        """
        Posts with at least one PENDING report, most reported first.

        Args:
            search: Substring matched against the title and author username
            is_hidden: Filter on the moderation flag

        Returns:
            Query of (Post, report_count) rows
        """
        counts = self._pending_counts(Report.post_id)
        query = (
            self.db.query(Post, counts.c.report_count)
            .join(counts, counts.c.target_id == Post.id)
            .join(Post.author)
            .options(contains_eager(Post.author))
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Post.title.ilike(pattern), User.username.ilike(pattern))
            )
        if is_hidden is not None:
            query = query.filter(Post.is_hidden.is_(is_hidden))
        return query.order_by(counts.c.report_count.desc(), Post.id.desc())

    def reported_comments_query(
        self, search: str | None = None, is_hidden: bool | None = None
    ) -> Query[Any]:
        """
        Comments with at least one PENDING report, most reported first.

        Args:
            search: Substring matched against the content and author username
            is_hidden: Filter on the moderation flag

        Returns:
            Query of (Comment, report_count) rows
        """
        counts = self._pending_counts(Report.comment_id)
        query = (
            self.db.query(Comment, counts.c.report_count)
            .join(counts, counts.c.target_id == Comment.id)
            .join(Comment.author)
            .options(contains_eager(Comment.author), selectinload(Comment.post))
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Comment.content.ilike(pattern), User.username.ilike(pattern))
            )
        if is_hidden is not None:
            query = query.filter(Comment.is_hidden.is_(is_hidden))
        return query.order_by(counts.c.report_count.desc(), Comment.id.desc())

    # ------------------------------------------------------------------
    # Dashboard counters
    # ------------------------------------------------------------------

    def count_by_status(self, status: ReportStatus) -> int:
        return self.db.query(Report).filter(Report.status == status).count()

    def count_urgent_targets(self) -> int:
        """Targets with at least HIGH_THRESHOLD pending reports."""
        return sum(
            1 for count in self.get_pending_group_counts() if count >= HIGH_THRESHOLD
        )

    def count_created_since(self, since: datetime) -> int:
        return self.db.query(Report).filter(Report.created_at >= since).count()
