"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .reputation_service import ReputationService
from .notification_service import NotificationService
from .settings_service import SettingsService
from .maintenance_service import MaintenanceService
from .user_service import UserService
from .tag_service import TagService
from .post_service import PostService
from .comment_service import CommentService
from .vote_service import VoteService
from .report_service import ReportService
from .moderator_service import ModeratorService
from .moderation_service import ModerationService
from .admin_service import AdminService

__all__ = [
    "ReputationService",
    "NotificationService",
    "SettingsService",
    "MaintenanceService",
    "UserService",
    "TagService",
    "PostService",
    "CommentService",
    "VoteService",
    "ReportService",
    "ModeratorService",
    "ModerationService",
    "AdminService",
]
