"""
Custom domain exceptions for the application.

These exceptions are raised by the service layer and converted to the
`{success: false, error: {code, message}}` envelope by centralized exception
handlers in main.py, keeping services HTTP-agnostic.

Each base class carries the HTTP status and the machine-readable error code
it maps to. Subclasses inherit both.
"""

from datetime import datetime

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class ValidationException(DomainException):
    """Raised when input is malformed or violates a content policy."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationException(DomainException):
    """Raised when authentication fails."""

    status_code = 401
    code = "UNAUTHORIZED"


class PermissionDeniedException(DomainException):
    """Raised when a role or ownership check fails."""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when operation conflicts with existing data."""

    status_code = 409
    code = "CONFLICT"


# Specific exceptions for domain entities


class UserNotFoundException(NotFoundException):
    """User not found."""

    pass


class PostNotFoundException(NotFoundException):
    """Post not found."""

    pass


class CommentNotFoundException(NotFoundException):
    """Comment not found."""

    pass


class ReportNotFoundException(NotFoundException):
    """Report not found."""

    pass


class TagNotFoundException(NotFoundException):
    """Tag not found."""

    pass


class NotificationNotFoundException(NotFoundException):
    """Notification not found."""

    pass


class InvalidCredentialsException(AuthenticationException):
    """Invalid email or password."""

    pass


class InactiveUserException(PermissionDeniedException):
    """User account is inactive (banned)."""

    pass


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't hold any of the required roles."""

    pass


class UserAlreadyExistsException(ConflictException):
    """Email or username already taken."""

    pass


class DuplicateReportException(ConflictException):
    """User already reported this content."""

    def __init__(self, message: str = "You have already reported this content"):
        super().__init__(message)


class CannotVoteOwnContentException(ValidationException):
    """Users cannot vote on their own posts or comments."""

    def __init__(self, message: str = "You cannot vote on your own content"):
        super().__init__(message)


class CannotReportOwnContentException(ValidationException):
    """Users cannot report their own posts or comments."""

    def __init__(self, message: str = "You cannot report your own content"):
        super().__init__(message)


class PostLockedException(ValidationException):
    """The post is locked and no longer accepts comments."""

    def __init__(self, message: str = "This post is locked"):
        super().__init__(message)


class MaintenanceModeException(DomainException):
    """The platform is in maintenance mode."""

    status_code = 503
    code = "MAINTENANCE_MODE"

    def __init__(self, message: str, end_time: datetime | None = None):
        self.end_time = end_time
        super().__init__(message)
