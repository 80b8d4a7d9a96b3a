"""Structured logging for the bridge.

Every record goes through structlog and carries an ISO timestamp, the level
and the logger name.  While a runner step is in flight its ``query_id`` is
attached, and while the client is on a given try its ``attempt`` number is
attached, so the retries of one instruction can be followed in the output.

Records are written to stderr.  stdout belongs to the CLI's own output.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, WrappedLogger

_ctx_query_id: ContextVar[str | None] = ContextVar("query_id", default=None)
_ctx_attempt: ContextVar[int | None] = ContextVar("attempt", default=None)


def bind_query_context(query_id: str) -> None:
    """Tag subsequent records of the current task / thread with *query_id*."""
    _ctx_query_id.set(query_id)


def clear_query_context() -> None:
    _ctx_query_id.set(None)


@contextmanager
def attempt_context(attempt: int) -> Iterator[None]:
    """Tag records emitted inside the block with the 1-indexed *attempt*."""
    token = _ctx_attempt.set(attempt)
    try:
        yield
    finally:
        _ctx_attempt.reset(token)


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def _inject_context_vars(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    if (query_id := _ctx_query_id.get()) is not None:
        event_dict.setdefault("query_id", query_id)
    if (attempt := _ctx_attempt.get()) is not None:
        event_dict.setdefault("attempt", attempt)
    return event_dict


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def configure_logging(
    level: str = "warning",
    format: str = "console",
    log_file: str | Path | None = None,
) -> None:
    """Route structlog and stdlib records to stderr (and *log_file*).

    Args:
        level:    debug, info, warning, error or critical.
        format:   ``"console"`` or ``"json"``.
        log_file: Optional file that receives the same records.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_vars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(level.upper())

    # httpx logs every request at INFO.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
