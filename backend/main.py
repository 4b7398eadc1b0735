# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry
from helpers.maintenance import MaintenanceMiddleware, maintenance_response
from helpers.rate_limiter import limiter
from helpers.responses import error_body, success
from helpers.security_headers import SecurityHeadersMiddleware
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    ConflictException,
    DomainException,
    MaintenanceModeException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from repositories.database import Base, engine
from routers import (
    admin_router,
    auth_router,
    comments_router,
    moderation_router,
    moderator_router,
    notifications_router,
    posts_router,
    reports_router,
    tags_router,
    users_router,
    votes_router,
)

# Sentry first so errors during startup are reported
init_sentry()
configure_logging(settings.ENVIRONMENT)

# Alembic head this build was written against
EXPECTED_REVISION = "0001_initial"

# Codes for errors raised by FastAPI/Starlette rather than by services
HTTP_ERROR_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
}


def check_schema_version() -> None:
    """Log whether the database sits on EXPECTED_REVISION."""
    try:
        with engine.connect() as connection:
            current = connection.execute(
                text("SELECT version_num FROM alembic_version LIMIT 1")
            ).scalar()
    except SQLAlchemyError as e:
        logger.warning(f"Schema version unavailable ({e.__class__.__name__})")
        return

    if current is None:
        logger.warning("alembic_version is empty; run 'alembic upgrade head'")
    elif current != EXPECTED_REVISION:
        logger.warning(
            f"Schema at {current} but code expects {EXPECTED_REVISION}; "
            "run 'alembic upgrade head'"
        )
    else:
        logger.info(f"Schema up to date ({current})")


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_schema_version()
    if settings.AUTO_CREATE_DB:
        logger.info("AUTO_CREATE_DB set; running create_all()")
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title=f"{settings.PROJECT_NAME} API", lifespan=lifespan)
app.state.limiter = limiter


# ============================================================================
# Middleware
# ============================================================================


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to the request and echo it back."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get("X-Correlation-ID"))
        set_correlation_id(correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request plus an X-Response-Time header."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        route = f"{request.method} {request.url.path}"
        logger.info(f"{route} -> {response.status_code} in {elapsed * 1000:.0f}ms")
        if elapsed > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request {route}: {elapsed:.2f}s "
                f"(limit {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        return response


# Last added runs first: CORS wraps everything, the maintenance gate is
# innermost and already has a correlation ID
app.add_middleware(MaintenanceMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(RequestLoggingMiddleware)

is_development = settings.ENVIRONMENT == "development"
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if is_development else settings.CORS_ORIGINS,
    allow_credentials=not is_development,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception handlers
# ============================================================================


def _current_correlation_id() -> str:
    return get_correlation_id() or generate_correlation_id()


def _envelope(
    status_code: int,
    code: str,
    message: str,
    correlation_id: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(code, message, correlation_id=correlation_id),
        headers=headers,
    )


def _domain_handler(
    label: str, headers: dict[str, str] | None = None, capture: bool = False
) -> Callable[[Request, DomainException], Awaitable[JSONResponse]]:
    """
    Build a handler that logs a domain exception and renders its envelope.

    Args:
        label: Log prefix
        headers: Extra response headers
        capture: Also send the exception to Sentry
    """

    async def handler(request: Request, exc: DomainException) -> JSONResponse:
        sentry_sdk.set_tag("correlation_id", exc.correlation_id)
        sentry_sdk.set_tag("exception_type", type(exc).__name__)
        if capture:
            sentry_sdk.capture_exception(exc)

        logger.bind(
            exception_type=type(exc).__name__, path=request.url.path
        ).warning(f"{label}: {exc.message}")
        return _envelope(
            exc.status_code, exc.code, exc.message, exc.correlation_id, headers
        )

    return handler


# Starlette picks the handler of the closest class in the exception's MRO
DOMAIN_HANDLERS: list[tuple[type[DomainException], Callable[..., Any]]] = [
    (ValidationException, _domain_handler("Validation error")),
    (
        AuthenticationException,
        _domain_handler("Authentication failed", {"WWW-Authenticate": "Bearer"}),
    ),
    (PermissionDeniedException, _domain_handler("Permission denied")),
    (NotFoundException, _domain_handler("Not found")),
    (ConflictException, _domain_handler("Conflict")),
    (DomainException, _domain_handler("Unclassified domain error", capture=True)),
]

for exc_class, domain_handler in DOMAIN_HANDLERS:
    app.add_exception_handler(exc_class, domain_handler)


@app.exception_handler(MaintenanceModeException)
async def maintenance_exception_handler(
    request: Request, exc: MaintenanceModeException
) -> JSONResponse:
    return maintenance_response(exc)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500; details are logged and sent to Sentry, hidden in production."""
    correlation_id = _current_correlation_id()
    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # repr() keeps braces in the message away from loguru's formatter
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}: {exc!r}"
    )

    message = "Internal server error"
    if settings.ENVIRONMENT != "production":
        message = f"{message}: {exc!r}"
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message, correlation_id
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Schema violations become a 400 naming the first offending field."""
    message = "Invalid request"
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = f"{field}: {error.get('msg')}" if field else str(error.get("msg"))
        break

    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return _envelope(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        message,
        _current_correlation_id(),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    logger.warning(f"Rate limit hit on {request.url.path}: {exc.detail}")
    return _envelope(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMITED",
        f"Too many requests: {exc.detail}",
        _current_correlation_id(),
        {"Retry-After": "60"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Framework errors (unknown route, missing bearer token) share the envelope."""
    return _envelope(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        str(exc.detail),
        _current_correlation_id(),
        getattr(exc, "headers", None),
    )


# ============================================================================
# Routers
# ============================================================================

for module in (
    auth_router,
    users_router,
    tags_router,
    posts_router,
    comments_router,
    votes_router,
    reports_router,
    notifications_router,
    moderator_router,
    moderation_router,
    admin_router,
):
    app.include_router(module.router, prefix="/api")


@app.get("/")
def root() -> dict:
    return success({"message": f"Welcome to {settings.PROJECT_NAME} API"})


@app.get("/api/health")
def health_check() -> dict:
    return success({"status": "healthy"})
