"""
Comment service for business logic.

Comments are answers to a post, optionally nested one level under another
comment. A post has at most one accepted comment; accepting, unaccepting and
the reputation that goes with them change in one transaction.
"""

from typing import List

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.permissions import STAFF_ROLES, ensure_owner_or_roles, is_staff
from helpers.pagination import PageParams
from helpers.sanitization import sanitize_html
from models.exceptions import (
    CommentNotFoundException,
    PermissionDeniedException,
    PostLockedException,
    PostNotFoundException,
    ValidationException,
)
from repositories.base import paginate
from repositories.comment_repository import CommentRepository
from repositories.database import atomic
from repositories.post_repository import PostRepository
from services.notification_service import NotificationService
from services.reputation_service import ReputationAction, ReputationService


class CommentService:
    """Service for comment-related business logic."""

    @staticmethod
    def _get_comment_or_404(db: Session, comment_id: int) -> db_models.Comment:
        comment = CommentRepository(db).get_with_post(comment_id)
        if comment is None:
            raise CommentNotFoundException(f"Comment with ID {comment_id} not found")
        return comment

    @staticmethod
    def get_comments(
        db: Session,
        post_id: int,
        params: PageParams,
        viewer: db_models.User | None = None,
    ) -> tuple[List[schemas.CommentWithReplies], int]:
        """
        Get one page of top-level comments with their replies.

        Args:
            db: Database session
            post_id: Post ID
            params: Page parameters (applied to top-level comments only)
            viewer: Current user, None if anonymous; staff also see hidden comments

        Returns:
            Tuple of (comments with replies, total top-level comments)

        Raises:
            PostNotFoundException: If the post does not exist or is hidden from the viewer
        """
        include_hidden = viewer is not None and is_staff(viewer)
        post = PostRepository(db).get_by_id(post_id)
        if post is None or (post.is_hidden and not include_hidden):
            raise PostNotFoundException(f"Post with ID {post_id} not found")

        comment_repo = CommentRepository(db)
        top_level, total = paginate(
            comment_repo.top_level_query(post_id, include_hidden),
            params.page,
            params.limit,
        )
        replies = comment_repo.get_replies(
            [comment.id for comment in top_level], include_hidden
        )

        replies_by_parent: dict[int, list[schemas.Comment]] = {}
        for reply in replies:
            replies_by_parent.setdefault(reply.parent_id, []).append(  # type: ignore[arg-type]
                schemas.Comment.model_validate(reply)
            )

        result = []
        for comment in top_level:
            item = schemas.CommentWithReplies.model_validate(comment)
            item.replies = replies_by_parent.get(comment.id, [])
            result.append(item)
        return result, total

    @staticmethod
    def create_comment(
        db: Session,
        post_id: int,
        author_id: int,
        content: str,
        parent_id: int | None = None,
    ) -> db_models.Comment:
        """
        Answer a post, or reply to an existing comment on it.

        Args:
            db: Database session
            post_id: Post ID
            author_id: Author user ID
            content: Raw content (sanitized here)
            parent_id: Comment being replied to, if any

        Returns:
            Created comment

        Raises:
            PostNotFoundException: If the post does not exist
            PostLockedException: If the post is locked
            CommentNotFoundException: If the parent does not exist
            ValidationException: If the parent belongs to another post
        """
        post_repo = PostRepository(db)
        comment_repo = CommentRepository(db)

        post = post_repo.get_by_id(post_id)
        if post is None or post.is_hidden:
            raise PostNotFoundException(f"Post with ID {post_id} not found")
        if post.is_locked:
            raise PostLockedException("This post is locked and cannot receive new comments")

        parent = None
        if parent_id is not None:
            parent = comment_repo.get_by_id(parent_id)
            if parent is None:
                raise CommentNotFoundException(
                    f"Parent comment with ID {parent_id} not found"
                )
            if parent.post_id != post_id:
                raise ValidationException(
                    "Parent comment does not belong to this post"
                )

        with atomic(db):
            comment = comment_repo.add(
                db_models.Comment(
                    content=sanitize_html(content),
                    post_id=post_id,
                    author_id=author_id,
                    parent_id=parent_id,
                )
            )
            post.comment_count += 1

        db.refresh(comment)
        logger.info(f"Comment {comment.id} created on post {post_id} by user {author_id}")

        if parent is not None:
            NotificationService.notify_reply(db, post, parent, comment)
        else:
            NotificationService.notify_comment(db, post, comment)
        return comment

    @staticmethod
    def update_comment(
        db: Session, comment_id: int, user: db_models.User, content: str
    ) -> db_models.Comment:
        """
        Edit a comment.

        Args:
            db: Database session
            comment_id: Comment ID
            user: Acting user (author, MODERATOR or ADMIN)
            content: New raw content

        Returns:
            Updated comment

        Raises:
            CommentNotFoundException: If the comment does not exist
            PermissionDeniedException: If the user may not edit it
        """
        comment = CommentService._get_comment_or_404(db, comment_id)
        ensure_owner_or_roles(
            user,
            comment.author_id,
            STAFF_ROLES,
            "You do not have permission to edit this comment",
        )

        comment.content = sanitize_html(content)  # type: ignore[assignment]
        return CommentRepository(db).save(comment)

    @staticmethod
    def delete_comment(db: Session, comment_id: int, user: db_models.User) -> None:
        """
        Delete a comment together with its replies.

        Args:
            db: Database session
            comment_id: Comment ID
            user: Acting user (author, MODERATOR or ADMIN)

        Raises:
            CommentNotFoundException: If the comment does not exist
            PermissionDeniedException: If the user may not delete it
        """
        comment = CommentService._get_comment_or_404(db, comment_id)
        ensure_owner_or_roles(
            user,
            comment.author_id,
            STAFF_ROLES,
            "You do not have permission to delete this comment",
        )
        with atomic(db):
            CommentService.remove_comment(db, comment)
        logger.info(f"Comment {comment_id} deleted by user {user.id}")

    @staticmethod
    def remove_comment(db: Session, comment: db_models.Comment) -> None:
        """
        Delete a comment subtree and keep the post counters in step.

        Stages the change only; the caller owns the transaction.
        """
        comment_repo = CommentRepository(db)
        post = comment.post
        removed = comment_repo.count_in_subtree(comment)

        comment_repo.delete(comment)
        post.comment_count = max(0, post.comment_count - removed)
        post.has_accepted_answer = (
            comment_repo.get_accepted_for_post(post.id) is not None
        )

    @staticmethod
    def accept_comment(
        db: Session, comment_id: int, user_id: int
    ) -> db_models.Comment:
        """
        Mark a comment as the accepted answer of its post.

        Any previously accepted comment is unaccepted and its author loses the
        accepted-answer bonus. The new answer's author gains it and the post
        author gains the accept bonus.

        Args:
            db: Database session
            comment_id: Comment ID
            user_id: Acting user, must be the post author

        Returns:
            The accepted comment

        Raises:
            CommentNotFoundException: If the comment does not exist
            PermissionDeniedException: If the user is not the post author
            ValidationException: If the comment is the user's own or already accepted
        """
        comment = CommentService._get_comment_or_404(db, comment_id)
        post = comment.post

        if post.author_id != user_id:
            raise PermissionDeniedException("Only the post author can accept an answer")
        if comment.author_id == user_id:
            raise ValidationException("You cannot accept your own comment")
        if comment.is_accepted:
            raise ValidationException("This comment is already accepted")

        answer_points = ReputationService.points_for(ReputationAction.ACCEPTED_ANSWER)
        previous = CommentRepository(db).get_accepted_for_post(post.id)

        with atomic(db):
            if previous is not None:
                previous.is_accepted = False
                ReputationService.adjust(db, previous.author_id, -answer_points)

            comment.is_accepted = True
            post.has_accepted_answer = True
            ReputationService.update_reputation(
                db, comment.author_id, ReputationAction.ACCEPTED_ANSWER
            )
            ReputationService.update_reputation(
                db, post.author_id, ReputationAction.ACCEPT_ANSWER
            )

        logger.info(
            f"Comment {comment.id} accepted on post {post.id}"
            + (f" (replacing {previous.id})" if previous is not None else "")
        )
        NotificationService.notify_accepted(db, post, comment)
        return comment

    @staticmethod
    def unaccept_comment(
        db: Session, comment_id: int, user_id: int
    ) -> db_models.Comment:
        """
        Withdraw acceptance and reverse the bonuses it granted.

        Args:
            db: Database session
            comment_id: Comment ID
            user_id: Acting user, must be the post author

        Returns:
            The comment

        Raises:
            CommentNotFoundException: If the comment does not exist
            PermissionDeniedException: If the user is not the post author
            ValidationException: If the comment is not accepted
        """
        comment = CommentService._get_comment_or_404(db, comment_id)
        post = comment.post

        if post.author_id != user_id:
            raise PermissionDeniedException(
                "Only the post author can unaccept an answer"
            )
        if not comment.is_accepted:
            raise ValidationException("This comment is not the accepted answer")

        with atomic(db):
            comment.is_accepted = False
            post.has_accepted_answer = False
            ReputationService.adjust(
                db,
                comment.author_id,
                -ReputationService.points_for(ReputationAction.ACCEPTED_ANSWER),
            )
            ReputationService.adjust(
                db,
                post.author_id,
                -ReputationService.points_for(ReputationAction.ACCEPT_ANSWER),
            )

        logger.info(f"Comment {comment.id} unaccepted on post {post.id}")
        return comment
