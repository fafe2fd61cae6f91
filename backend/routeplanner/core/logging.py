from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import structlog


def configure_logging(debug: bool = False) -> None:
    """Configure structured logging for the planner."""

    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(format="%(message)s", level=level)
    # httpx logs every request at INFO, one per routed segment
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer()
            if debug
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(*args: Any, **kwargs: Any) -> structlog.BoundLogger:
    return structlog.get_logger(*args, **kwargs)


@contextmanager
def route_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every log line emitted while computing one route."""

    tokens = structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
