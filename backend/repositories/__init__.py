"""
Repository pattern implementation for data access layer.
"""

from .base import BaseRepository
from .comment_repository import CommentRepository
from .config_repository import ConfigRepository
from .moderator_action_repository import ModeratorActionRepository
from .notification_repository import NotificationRepository
from .post_repository import PostRepository
from .report_repository import ReportRepository
from .tag_repository import TagRepository
from .user_repository import UserRepository
from .vote_repository import VoteRepository

__all__ = [
    "BaseRepository",
    "CommentRepository",
    "ConfigRepository",
    "ModeratorActionRepository",
    "NotificationRepository",
    "PostRepository",
    "ReportRepository",
    "TagRepository",
    "UserRepository",
    "VoteRepository",
]
