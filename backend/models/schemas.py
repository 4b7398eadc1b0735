from datetime import datetime
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from repositories.db_models import (
    Level,
    ModeratorActionType,
    NotificationType,
    ReportReason,
    ReportStatus,
    Role,
    TargetType,
    VoteType,
)


# User Schemas
class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")
    display_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)


class UserSummary(BaseModel):
    """Author block embedded in posts, comments and queue items."""

    id: int
    username: str
    display_name: str
    reputation: int
    level: Level

    model_config = ConfigDict(from_attributes=True)


class User(UserSummary):
    email: EmailStr
    bio: Optional[str] = None
    roles: List[Role]
    is_active: bool
    created_at: datetime

    @field_validator("roles", mode="before")
    @classmethod
    def sort_roles(cls, v: object) -> object:
        if isinstance(v, (set, frozenset)):
            return sorted(v, key=lambda role: list(Role).index(role))
        return v


class UserProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)


class LevelProgress(BaseModel):
    level: Level
    next_level: Optional[Level] = None
    points_to_next: int

    model_config = ConfigDict(from_attributes=True)


class UserPublicProfile(UserSummary):
    bio: Optional[str] = None
    created_at: datetime
    post_count: int
    comment_count: int
    accepted_answers: int
    progress: LevelProgress


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class AccountDelete(BaseModel):
    password: str = Field(..., min_length=1)


class NotificationPreferences(BaseModel):
    notification_sound: bool
    email_notifications: bool

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferencesUpdate(BaseModel):
    notification_sound: Optional[bool] = None
    email_notifications: Optional[bool] = None


class Token(BaseModel):
    access_token: str
    token_type: str


# Tag Schemas
class TagCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=30)
    description: Optional[str] = Field(None, max_length=200)


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=30)
    description: Optional[str] = Field(None, max_length=200)


class Tag(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    post_count: int

    model_config = ConfigDict(from_attributes=True)


# Post Schemas
class PostCreate(BaseModel):
    title: str = Field(..., min_length=10, max_length=200)
    content: str = Field(..., min_length=30)
    tag_ids: List[int] = Field(..., min_length=1, max_length=5)


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=10, max_length=200)
    content: Optional[str] = Field(None, min_length=30)
    tag_ids: Optional[List[int]] = Field(None, min_length=1, max_length=5)


class Post(BaseModel):
    id: int
    title: str
    slug: str
    content: str
    author: UserSummary
    tags: List[Tag]
    votes: int
    views: int
    comment_count: int
    has_accepted_answer: bool
    is_hidden: bool
    is_locked: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostDetail(Post):
    user_vote: Optional[VoteType] = None


# Comment Schemas
class CommentCreate(BaseModel):
    content: str = Field(..., min_length=10)
    parent_id: Optional[int] = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=10)


class Comment(BaseModel):
    id: int
    content: str
    post_id: int
    parent_id: Optional[int] = None
    author: UserSummary
    votes: int
    is_accepted: bool
    is_hidden: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentWithReplies(Comment):
    replies: List[Comment] = []


class PostRef(BaseModel):
    id: int
    title: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class CommentWithPost(Comment):
    """Comment as listed in the admin panel."""

    post: PostRef


# Vote Schemas
class VoteCreate(BaseModel):
    value: VoteType
    post_id: Optional[int] = None
    comment_id: Optional[int] = None

    @model_validator(mode="after")
    def exactly_one_target(self) -> "VoteCreate":
        if (self.post_id is None) == (self.comment_id is None):
            raise ValueError("Provide exactly one of post_id or comment_id")
        return self


class VoteResult(BaseModel):
    votes: int
    user_vote: Optional[VoteType] = None


# Report Schemas
class ReportCreate(BaseModel):
    reason: ReportReason
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    post_id: Optional[int] = None
    comment_id: Optional[int] = None

    @model_validator(mode="after")
    def exactly_one_target(self) -> "ReportCreate":
        if self.post_id is None and self.comment_id is None:
            raise ValueError("Provide a post_id or a comment_id")
        if self.post_id is not None and self.comment_id is not None:
            raise ValueError("A report cannot target a post and a comment at once")
        return self


class ReportStatusUpdate(BaseModel):
    status: ReportStatus
    resolution: Optional[str] = Field(None, max_length=1000)


class Report(BaseModel):
    id: int
    reason: ReportReason
    description: Optional[str] = None
    post_id: Optional[int] = None
    comment_id: Optional[int] = None
    status: ReportStatus
    reporter: UserSummary
    resolved_by_id: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolver_notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Moderator Schemas
class QueueItem(BaseModel):
    id: int
    type: TargetType
    content: str
    title: Optional[str] = None
    author: Optional[UserSummary] = None
    reports: int
    reason: ReportReason
    priority: str
    created_at: datetime
    reported_at: datetime


class RecentQueueItem(BaseModel):
    id: int
    type: TargetType
    title: str
    author: Optional[UserSummary] = None
    reports: int
    reported_at: datetime


class ReportedPost(BaseModel):
    id: int
    title: str
    slug: str
    content: str
    author: UserSummary
    reports: int
    status: str
    created_at: datetime


class ReportedComment(BaseModel):
    id: int
    content: str
    post_id: int
    post_title: str
    post_slug: str
    author: UserSummary
    reports: int
    status: str
    created_at: datetime


class QueueStats(BaseModel):
    urgent: int
    high: int
    medium: int
    low: int
    total: int


class DashboardStats(BaseModel):
    pending_reports: int
    urgent_reports: int
    resolved_today: int
    resolved_percentage_change: float
    hidden_posts_this_week: int
    warnings_this_month: int
    reports_this_week: int


class TakeAction(BaseModel):
    target_id: int
    target_type: TargetType
    action_type: ModeratorActionType
    reason: Optional[str] = Field(None, min_length=3, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)


class ResolveReport(BaseModel):
    action: str = Field(..., pattern=r"^(resolve|dismiss|escalate)$")
    notes: Optional[str] = Field(None, max_length=1000)


class ModerationReason(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ModeratorAction(BaseModel):
    id: int
    moderator_id: Optional[int] = None
    action_type: ModeratorActionType
    target_type: TargetType
    target_id: int
    reason: str
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ModeratorHistoryStats(BaseModel):
    total_actions: int
    by_type: dict[str, int]


# Admin Schemas
class RolesUpdate(BaseModel):
    roles: List[Role] = Field(..., min_length=1)


class BanRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class PlatformStatistics(BaseModel):
    total_users: int
    active_users: int
    moderators: int
    admins: int
    total_posts: int
    visible_posts: int
    total_comments: int
    total_votes: int
    pending_reports: int
    posts_this_week: int


class MaintenanceStatus(BaseModel):
    is_enabled: bool
    message: Optional[str] = None
    end_time: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MaintenanceUpdate(BaseModel):
    is_enabled: bool
    message: Optional[str] = Field(None, max_length=500)
    end_time: Optional[datetime] = None


class SiteSettings(BaseModel):
    site_name: str
    site_description: Optional[str] = None
    allow_registration: bool
    require_email_verification: bool
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SiteSettingsUpdate(BaseModel):
    site_name: Optional[str] = Field(None, min_length=1, max_length=100)
    site_description: Optional[str] = Field(None, max_length=500)
    allow_registration: Optional[bool] = None
    require_email_verification: Optional[bool] = None


# Notification Schemas
class Notification(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
