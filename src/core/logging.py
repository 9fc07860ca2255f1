"""Structured logging configuration using structlog.

Every event carries the request id (set by RequestContextMiddleware) and the
business id the request resolved to. Money values are Decimal throughout the
engine; they are rendered as exact strings in both console and JSON output.
"""

import logging
import sys
from contextvars import ContextVar
from decimal import Decimal
from typing import Any

import orjson
import structlog
from structlog.types import Processor

from src.core.config import settings

# Correlation ids for the current request
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
business_id_ctx: ContextVar[str | None] = ContextVar("business_id", default=None)


def _add_context_vars(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Copy the request and business ids into the event, when set."""
    if request_id := request_id_ctx.get():
        event_dict["request_id"] = request_id
    if business_id := business_id_ctx.get():
        event_dict["business_id"] = business_id
    return event_dict


def _render_decimals(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render top-level Decimal values as plain strings ("1247.02803")."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def _orjson_serializer(obj: Any, **kwargs: Any) -> str:
    """Serialize a log event with orjson; unknown types fall back to str()."""
    return orjson.dumps(obj, default=str).decode("utf-8")


def _use_json() -> bool:
    log_format = settings.log_format.lower() if settings.log_format else None
    if log_format is not None:
        return log_format == "json"
    return settings.environment != "development"


def configure_logging() -> None:
    """Configure structlog for the application.

    Development: colored ConsoleRenderer.
    Everything else (or LOG_FORMAT=json): JSON lines rendered with orjson,
    with the event text under "message".
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_context_vars,
        _render_decimals,
    ]

    if _use_json():
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.EventRenamer("message"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(serializer=_orjson_serializer),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib records (uvicorn, sentry) through the same stream
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if settings.debug else logging.INFO,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, usually named after the calling module."""
    return structlog.get_logger(name)
