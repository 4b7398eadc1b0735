"""
Moderator workspace: the grouped report queue, dashboard counters and the
moderation action executor.

`take_action` writes the audit row, resolves every pending report against the
target and applies the structural effect in a single transaction, so either
all three happen or none does.
"""

from collections.abc import Callable
from datetime import timedelta
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PageParams
from helpers.time_utils import days_ago, start_of_day
from models.exceptions import (
    CommentNotFoundException,
    PostNotFoundException,
    ValidationException,
)
from repositories.base import paginate
from repositories.comment_repository import CommentRepository
from repositories.database import atomic
from repositories.db_models import ModeratorActionType, ReportStatus, TargetType
from repositories.moderator_action_repository import ModeratorActionRepository
from repositories.post_repository import PostRepository
from repositories.report_repository import (
    HIGH_THRESHOLD,
    MEDIUM_THRESHOLD,
    URGENT_THRESHOLD,
    ReportRepository,
)
from services.comment_service import CommentService
from services.notification_service import NotificationService
from services.post_service import PostService
from services.report_service import ReportService

DEFAULT_REASON = "Content moderation"

# Queue buckets in rank order
PRIORITIES = ("urgent", "high", "medium", "low")

Target = db_models.Post | db_models.Comment


def _set(attribute: str, value: bool) -> Callable[[Session, Any], None]:
    def effect(db: Session, target: Any) -> None:
        setattr(target, attribute, value)

    return effect


def _delete_post(db: Session, post: db_models.Post) -> None:
    PostService.remove_post(db, post)


def _delete_comment(db: Session, comment: db_models.Comment) -> None:
    CommentService.remove_comment(db, comment)


def _no_effect(db: Session, target: Any) -> None:
    return None


# action -> (target types it applies to, structural effect)
ACTION_DISPATCH: dict[
    ModeratorActionType, tuple[frozenset[TargetType], Callable[[Session, Any], None]]
] = {
    ModeratorActionType.HIDE_POST: (frozenset({TargetType.POST}), _set("is_hidden", True)),
    ModeratorActionType.UNHIDE_POST: (frozenset({TargetType.POST}), _set("is_hidden", False)),
    ModeratorActionType.LOCK_POST: (frozenset({TargetType.POST}), _set("is_locked", True)),
    ModeratorActionType.UNLOCK_POST: (frozenset({TargetType.POST}), _set("is_locked", False)),
    ModeratorActionType.DELETE_POST: (frozenset({TargetType.POST}), _delete_post),
    ModeratorActionType.HIDE_COMMENT: (
        frozenset({TargetType.COMMENT}),
        _set("is_hidden", True),
    ),
    ModeratorActionType.UNHIDE_COMMENT: (
        frozenset({TargetType.COMMENT}),
        _set("is_hidden", False),
    ),
    ModeratorActionType.DELETE_COMMENT: (frozenset({TargetType.COMMENT}), _delete_comment),
    ModeratorActionType.APPROVE_CONTENT: (
        frozenset({TargetType.POST, TargetType.COMMENT}),
        _no_effect,
    ),
    ModeratorActionType.WARN_USER: (
        frozenset({TargetType.POST, TargetType.COMMENT}),
        _no_effect,
    ),
}

# Visibility filter of the reported-content listings
VISIBILITY_FILTERS: dict[str, bool | None] = {
    "all": None,
    "visible": False,
    "hidden": True,
}

PREVIEW_LENGTH = 200

RESOLVE_ACTIONS = {
    "resolve": ReportStatus.RESOLVED,
    "dismiss": ReportStatus.REJECTED,
    "escalate": ReportStatus.REVIEWING,
}


def priority_for_count(report_count: int) -> str:
    """
    Priority bucket of a target with `report_count` pending reports.

    >>> priority_for_count(5), priority_for_count(3), priority_for_count(2), priority_for_count(1)
    ('urgent', 'high', 'medium', 'low')
    """
    if report_count >= URGENT_THRESHOLD:
        return "urgent"
    if report_count >= HIGH_THRESHOLD:
        return "high"
    if report_count >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


class ModeratorService:
    """Service for the moderator queue and moderation actions."""

    @staticmethod
    def _load_queue_targets(
        db: Session, rows: list[Any]
    ) -> dict[tuple[TargetType, int], Target]:
        """Posts and comments behind grouped report rows, authors loaded."""
        post_ids = [row.post_id for row in rows if row.post_id is not None]
        comment_ids = [row.comment_id for row in rows if row.comment_id is not None]
        targets: dict[tuple[TargetType, int], Target] = {}
        for post in PostRepository(db).get_many_with_author(post_ids):
            targets[(TargetType.POST, post.id)] = post
        for comment in CommentRepository(db).get_many_with_author(comment_ids):
            targets[(TargetType.COMMENT, comment.id)] = comment
        return targets

    @staticmethod
    def get_queue(
        db: Session,
        params: PageParams,
        priority: str | None = None,
        target_type: TargetType | None = None,
    ) -> tuple[list[schemas.QueueItem], int]:
        """
        One page of reported targets, most urgent first.

        Pending reports are grouped per target across the whole pending set;
        the priority filter is applied before paging.

        Args:
            db: Database session
            params: Page parameters
            priority: Only targets in this bucket (urgent|high|medium|low)
            target_type: Only POST or only COMMENT targets

        Returns:
            Tuple of (queue items, total matching targets)

        Raises:
            ValidationException: If priority or target_type is invalid
        """
        if priority is not None and priority not in PRIORITIES:
            raise ValidationException(
                f"Invalid priority '{priority}', expected one of {', '.join(PRIORITIES)}"
            )
        if target_type == TargetType.USER:
            raise ValidationException("The queue only holds posts and comments")

        report_repo = ReportRepository(db)
        rank = PRIORITIES.index(priority) if priority is not None else None
        rows, total = report_repo.get_pending_queue(
            params.page, params.limit, priority_rank=rank, target_type=target_type
        )

        targets = ModeratorService._load_queue_targets(db, rows)
        latest = report_repo.get_latest_pending_reason(
            [row.post_id for row in rows if row.post_id is not None],
            [row.comment_id for row in rows if row.comment_id is not None],
        )

        items = []
        for row in rows:
            kind = TargetType.POST if row.post_id is not None else TargetType.COMMENT
            content = targets.get((kind, row.post_id or row.comment_id))
            if content is None:
                continue

            report = latest.get((kind, content.id))
            items.append(
                schemas.QueueItem(
                    id=content.id,
                    type=kind,
                    content=content.content,
                    title=content.title if kind == TargetType.POST else None,
                    author=(
                        schemas.UserSummary.model_validate(content.author)
                        if content.author
                        else None
                    ),
                    reports=row.report_count,
                    reason=report.reason if report else db_models.ReportReason.OTHER,
                    priority=priority_for_count(row.report_count),
                    created_at=content.created_at,
                    reported_at=row.last_reported_at,
                )
            )
        return items, total

    @staticmethod
    def get_recent_queue_items(
        db: Session, limit: int
    ) -> list[schemas.RecentQueueItem]:
        """Dashboard preview: targets with the newest pending reports."""
        rows = ReportRepository(db).get_recent_pending_targets(limit)
        targets = ModeratorService._load_queue_targets(db, rows)

        items = []
        for row in rows:
            kind = TargetType.POST if row.post_id is not None else TargetType.COMMENT
            content = targets.get((kind, row.post_id or row.comment_id))
            if content is None:
                continue
            items.append(
                schemas.RecentQueueItem(
                    id=content.id,
                    type=kind,
                    title=(
                        content.title if kind == TargetType.POST else "Reported comment"
                    ),
                    author=(
                        schemas.UserSummary.model_validate(content.author)
                        if content.author
                        else None
                    ),
                    reports=row.report_count,
                    reported_at=row.last_reported_at,
                )
            )
        return items

    @staticmethod
    def _visibility(status: str | None) -> bool | None:
        if status is None:
            return None
        if status not in VISIBILITY_FILTERS:
            raise ValidationException(
                f"Invalid status '{status}', expected one of "
                f"{', '.join(VISIBILITY_FILTERS)}"
            )
        return VISIBILITY_FILTERS[status]

    @staticmethod
    def get_reported_posts(
        db: Session,
        params: PageParams,
        search: str | None = None,
        status: str | None = None,
    ) -> tuple[list[schemas.ReportedPost], int]:
        """
        Posts with pending reports, most reported first.

        Args:
            db: Database session
            params: Page parameters
            search: Substring of the title or author username
            status: visible, hidden or all

        Returns:
            Tuple of (reported posts, total matching)

        Raises:
            ValidationException: If status is unknown
        """
        query = ReportRepository(db).reported_posts_query(
            search=search, is_hidden=ModeratorService._visibility(status)
        )
        rows, total = paginate(query, params.page, params.limit)
        return [
            schemas.ReportedPost(
                id=post.id,
                title=post.title,
                slug=post.slug,
                content=post.content[:PREVIEW_LENGTH],
                author=schemas.UserSummary.model_validate(post.author),
                reports=report_count,
                status="hidden" if post.is_hidden else "visible",
                created_at=post.created_at,
            )
            for post, report_count in rows
        ], total

    @staticmethod
    def get_reported_comments(
        db: Session,
        params: PageParams,
        search: str | None = None,
        status: str | None = None,
    ) -> tuple[list[schemas.ReportedComment], int]:
        """
        Comments with pending reports, most reported first.

        Raises:
            ValidationException: If status is unknown
        """
        query = ReportRepository(db).reported_comments_query(
            search=search, is_hidden=ModeratorService._visibility(status)
        )
        rows, total = paginate(query, params.page, params.limit)
        return [
            schemas.ReportedComment(
                id=comment.id,
                content=comment.content[:PREVIEW_LENGTH],
                post_id=comment.post_id,
                post_title=comment.post.title,
                post_slug=comment.post.slug,
                author=schemas.UserSummary.model_validate(comment.author),
                reports=report_count,
                status="hidden" if comment.is_hidden else "visible",
                created_at=comment.created_at,
            )
            for comment, report_count in rows
        ], total

    @staticmethod
    def get_queue_stats(db: Session) -> schemas.QueueStats:
        counts = {bucket: 0 for bucket in PRIORITIES}
        group_counts = ReportRepository(db).get_pending_group_counts()
        for report_count in group_counts:
            counts[priority_for_count(report_count)] += 1
        return schemas.QueueStats(**counts, total=len(group_counts))

    @staticmethod
    def get_dashboard_stats(db: Session, moderator_id: int) -> schemas.DashboardStats:
        """
        Counters for the moderator dashboard.

        Global counters cover the report backlog; the activity counters
        (resolved today, hidden posts, warnings) are the requesting
        moderator's own actions.

        Args:
            db: Database session
            moderator_id: Requesting moderator

        Returns:
            Dashboard statistics
        """
        report_repo = ReportRepository(db)
        action_repo = ModeratorActionRepository(db)

        today = start_of_day()
        tomorrow = today + timedelta(days=1)
        yesterday = today - timedelta(days=1)

        resolved_today = action_repo.count_for_moderator_between(
            moderator_id, today, tomorrow
        )
        resolved_yesterday = action_repo.count_for_moderator_between(
            moderator_id, yesterday, today
        )
        if resolved_yesterday > 0:
            change = round(
                (resolved_today - resolved_yesterday) / resolved_yesterday * 100
            )
        else:
            change = 100 if resolved_today > 0 else 0

        return schemas.DashboardStats(
            pending_reports=report_repo.count_by_status(ReportStatus.PENDING),
            urgent_reports=report_repo.count_urgent_targets(),
            resolved_today=resolved_today,
            resolved_percentage_change=change,
            hidden_posts_this_week=action_repo.count_since(
                ModeratorActionType.HIDE_POST, days_ago(7), moderator_id
            ),
            warnings_this_month=action_repo.count_since(
                ModeratorActionType.WARN_USER, days_ago(30), moderator_id
            ),
            reports_this_week=report_repo.count_created_since(days_ago(7)),
        )

    @staticmethod
    def _load_target(db: Session, target_type: TargetType, target_id: int) -> Target:
        if target_type == TargetType.POST:
            post = PostRepository(db).get_by_id(target_id)
            if post is None:
                raise PostNotFoundException(f"Post with ID {target_id} not found")
            return post
        if target_type == TargetType.COMMENT:
            comment = CommentRepository(db).get_with_post(target_id)
            if comment is None:
                raise CommentNotFoundException(
                    f"Comment with ID {target_id} not found"
                )
            return comment
        raise ValidationException("Moderation actions apply to posts and comments")

    @staticmethod
    def take_action(
        db: Session,
        moderator_id: int,
        target_id: int,
        target_type: TargetType,
        action_type: ModeratorActionType,
        reason: str | None = None,
        notes: str | None = None,
    ) -> db_models.ModeratorAction:
        """
        Apply a moderation decision to a reported post or comment.

        Args:
            db: Database session
            moderator_id: Acting moderator
            target_id: Post or comment ID
            target_type: POST or COMMENT
            action_type: Action to apply
            reason: Reason recorded in the audit log
            notes: Notes copied onto the resolved reports

        Returns:
            The audit row

        Raises:
            PostNotFoundException / CommentNotFoundException: If the target is missing
            ValidationException: If the action does not apply to the target type
        """
        target = ModeratorService._load_target(db, target_type, target_id)

        dispatch = ACTION_DISPATCH.get(action_type)
        if dispatch is None or target_type not in dispatch[0]:
            raise ValidationException(
                f"Action {action_type.value} cannot be applied to a "
                f"{target_type.value.lower()}"
            )
        _, effect = dispatch

        author_id = target.author_id
        reason = reason or DEFAULT_REASON

        with atomic(db):
            action = ModeratorActionRepository(db).add(
                db_models.ModeratorAction(
                    moderator_id=moderator_id,
                    action_type=action_type,
                    target_type=target_type,
                    target_id=target_id,
                    reason=reason,
                    notes=notes,
                )
            )
            resolved = ReportRepository(db).resolve_pending_for_target(
                target_type, target_id, moderator_id, notes
            )
            effect(db, target)

        logger.info(
            f"Moderator {moderator_id} applied {action_type.value} to "
            f"{target_type.value.lower()} {target_id}; {resolved} report(s) resolved"
        )

        if action_type == ModeratorActionType.WARN_USER:
            NotificationService.notify_system(
                db,
                author_id,
                "Moderator warning",
                f"Your content was flagged by a moderator. Reason: {reason}",
            )
        return action

    @staticmethod
    def resolve_report(
        db: Session,
        report_id: int,
        moderator_id: int,
        action: str,
        notes: str | None = None,
    ) -> db_models.Report:
        """
        Close or escalate a single report without touching its target.

        Args:
            db: Database session
            report_id: Report ID
            moderator_id: Acting moderator
            action: "resolve" (RESOLVED), "dismiss" (REJECTED) or
                "escalate" (REVIEWING)
            notes: Resolver notes

        Returns:
            Updated report

        Raises:
            ValidationException: If the action is unknown or the report is closed
            ReportNotFoundException: If the report does not exist
        """
        status = RESOLVE_ACTIONS.get(action)
        if status is None:
            raise ValidationException(
                f"Invalid action '{action}', expected resolve, dismiss or escalate"
            )

        report = ReportService.get_report_or_404(db, report_id)
        if report.status in (ReportStatus.RESOLVED, ReportStatus.REJECTED):
            raise ValidationException("This report has already been closed")

        return ReportService.update_report_status(
            db, report_id, status, moderator_id, notes
        )

    @staticmethod
    def get_moderator_history(
        db: Session,
        moderator_id: int,
        params: PageParams,
        action_type: ModeratorActionType | None = None,
    ) -> tuple[list[db_models.ModeratorAction], int, schemas.ModeratorHistoryStats]:
        """
        A moderator's own audit trail with per-type totals.

        Returns:
            Tuple of (actions on the page, total actions matching, stats)
        """
        action_repo = ModeratorActionRepository(db)
        actions, total = paginate(
            action_repo.list_query(moderator_id=moderator_id, action_type=action_type),
            params.page,
            params.limit,
        )
        by_type = action_repo.count_by_type_for_moderator(moderator_id)
        stats = schemas.ModeratorHistoryStats(
            total_actions=sum(by_type.values()),
            by_type={kind.value: count for kind, count in by_type.items()},
        )
        return actions, total, stats
