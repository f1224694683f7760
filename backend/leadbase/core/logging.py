"""Centralized Loguru configuration for the leadbase backend.

Standard library loggers (uvicorn, SQLAlchemy, httpx) are routed into
Loguru through :class:`InterceptHandler`. Every record passes through
:func:`redact_secrets` first: JWTs and ``token=`` query values (verification
and reset links, the Google callback) never reach a sink.

Environment:
    LOG_LEVEL: Minimum level (default ``INFO``).
    LOG_JSON: Emit one JSON object per line instead of text (``1``/``true``).
"""

import logging
import os
import re
import sys

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")

_JWT_PATTERN = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+")
_TOKEN_PARAM_PATTERN = re.compile(r"(token=)[^&\s\"']+")


def redact_secrets(record) -> None:
    """Loguru patcher masking bearer tokens and one-time link tokens.

    Records bound with ``reveal=True`` (the development mail log) are left
    untouched.
    """
    if record["extra"].get("reveal"):
        return
    message = _JWT_PATTERN.sub("<jwt>", record["message"])
    record["message"] = _TOKEN_PARAM_PATTERN.sub(r"\1<redacted>", message)


logger.remove()
logger.configure(patcher=redact_secrets)

logger.add(
    sys.stdout,
    level=LOG_LEVEL,
    format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name} | {message}",
    serialize=LOG_JSON,
    backtrace=True,
    diagnose=False,
)


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to Loguru, keeping the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


logging.basicConfig(handlers=[InterceptHandler()], level=LOG_LEVEL, force=True)

# uvicorn installs its own handlers; SQLAlchemy echo and httpx would
# otherwise double-log through the root logger.
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine", "httpx"):
    logging.getLogger(name).handlers = [InterceptHandler()]
    logging.getLogger(name).propagate = False
