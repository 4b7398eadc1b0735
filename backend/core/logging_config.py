"""
Loguru logging configuration.

Development gets a colourised console sink; every other environment logs
JSON lines. Standard library loggers (uvicorn, sqlalchemy) are routed through
loguru so all output shares one format and carries the correlation ID.
"""

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[correlation_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

ROUTED_STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy")


def correlation_filter(record: "Record") -> bool:
    """Stamp the correlation ID on the record; never drops messages."""
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(environment: str = "development") -> None:
    """
    Configure loguru for the application.

    Args:
        environment: "development" for console output, "test" for console
            output without a file sink, anything else for JSON.
    """
    logger.remove()

    if environment in ("development", "test"):
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level="DEBUG" if environment == "development" else "WARNING",
            filter=correlation_filter,
            colorize=environment == "development",
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=correlation_filter,
            serialize=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    for name in ROUTED_STDLIB_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    if environment == "test":
        return

    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    logger.add(
        logs_dir / "app.log",
        format=CONSOLE_FORMAT if environment == "development" else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=(environment != "development"),
    )
