"""Structured logging for the game service.

Every line carries the service name and, inside a request, the request id
and caller id bound by the API layer. Game events are logged as
snake_case event names (``vote_cast``, ``case_status_advanced``,
``score_saved``) with ids as key/value context, so one case or one user
can be followed across requests and scheduler sweeps with a field filter.

LOG_FORMAT=json renders one JSON object per line; anything else renders
the colored console format used in development.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.types import EventDict, Processor, WrappedLogger

    from verdict.core.config import Settings

SERVICE_NAME = "daily-verdict"

# Per-request access lines come from our middleware; the client libraries
# log every round-trip to Redis and the platform at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "redis", "fakeredis")


def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _processors(*, json_output: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        # Tracebacks as a string field instead of a multi-line dump.
        processors.append(structlog.processors.format_exc_info)
    return processors


def setup_logging(settings: Settings) -> None:
    """Route structlog and stdlib records through one renderer on stdout."""
    json_output = settings.log_format == "json"
    shared = _processors(json_output=json_output)

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # uvicorn installs its own handlers; let its records reach ours instead.
    for name in ("uvicorn", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
