"""
Maintenance gate middleware.

While maintenance mode is on, API requests get a 503 envelope unless they
carry a bearer token of an active MODERATOR or ADMIN. Health, auth, admin and
moderator routes are always let through; the latter two are role-guarded by
their own dependencies.

If the flag cannot be read the request is let through and the error logged.
"""

from collections.abc import Awaitable, Callable

import jwt
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

from authentication.auth import decode_token_subject, get_user_by_email
from authentication.permissions import STAFF_ROLES, has_any
from helpers.responses import error_body
from helpers.time_utils import format_iso8601
from models.exceptions import MaintenanceModeException
from repositories.database import get_db
from services.maintenance_service import DEFAULT_MESSAGE, MaintenanceService

EXEMPT_PREFIXES = ("/api/health", "/api/auth", "/api/admin", "/api/moderator")


def is_exempt(path: str) -> bool:
    """Paths that bypass the gate; non-API paths (docs) are never gated."""
    if not path.startswith("/api"):
        return True
    return any(
        path == prefix or path.startswith(prefix + "/") for prefix in EXEMPT_PREFIXES
    )


def _is_staff_token(db: Session, authorization: str | None) -> bool:
    if not authorization or not authorization.lower().startswith("bearer "):
        return False
    try:
        email = decode_token_subject(authorization[7:].strip())
    except jwt.exceptions.InvalidTokenError:
        return False
    if email is None:
        return False
    user = get_user_by_email(db, email)
    return user is not None and user.is_active and has_any(user.roles, STAFF_ROLES)


def maintenance_response(exc: MaintenanceModeException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            exc.code,
            exc.message,
            end_time=format_iso8601(exc.end_time),
            correlation_id=exc.correlation_id,
        ),
        headers={"Retry-After": "60"},
    )


class MaintenanceMiddleware(BaseHTTPMiddleware):
    """Block non-staff API traffic while maintenance mode is enabled."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if is_exempt(request.url.path):
            return await call_next(request)

        blocked: MaintenanceModeException | None = None
        try:
            blocked = self._check(request)
        except Exception:
            logger.exception(
                f"Maintenance check failed for {request.url.path}, allowing request"
            )

        if blocked is not None:
            return maintenance_response(blocked)
        return await call_next(request)

    @staticmethod
    def _check(request: Request) -> MaintenanceModeException | None:
        # Resolve the session the same way routes do so test overrides apply
        session_factory = request.app.dependency_overrides.get(get_db, get_db)
        sessions = session_factory()
        db = next(sessions)
        try:
            snapshot = MaintenanceService.get_snapshot(db)
            if not snapshot.is_enabled:
                return None
            if _is_staff_token(db, request.headers.get("Authorization")):
                return None
            return MaintenanceModeException(
                snapshot.message or DEFAULT_MESSAGE, snapshot.end_time
            )
        finally:
            sessions.close()
