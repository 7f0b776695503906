"""Structlog setup for the AI gateway.

Events are rendered as one JSON object per line on stdout. Request handlers
bind ``request_id`` and ``route`` into the context so gateway events (retries,
upstream errors, timeouts) can be correlated with the request that caused them.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

SECRET_FIELDS = frozenset({"api_key", "authorization", "headers"})
REDACTED = "[redacted]"


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask fields that may carry the OpenRouter key."""

    for field in SECRET_FIELDS.intersection(event_dict):
        event_dict[field] = REDACTED
    return event_dict


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure structlog once per process; ``level`` accepts names like ``"DEBUG"``."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.EventRenamer("message"),
        structlog.processors.JSONRenderer(),
    ]

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_trace(**kwargs: Any) -> None:
    """Bind request metadata (``request_id``, ``route``) for the current task."""

    structlog.contextvars.bind_contextvars(**kwargs)


def clear_trace() -> None:
    """Drop context left over from a previous request on this worker."""

    structlog.contextvars.clear_contextvars()
