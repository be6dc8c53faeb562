"""Logging setup for processes that run the job core.

The composition root calls `configure_logging` once. It wires separate
stdout/stderr sinks and injects the current trace tag into every record.
Adapters and core code never install handlers; they only emit through
`LoggingPort` or standard module loggers.

The trace tag is the optional log prefix a caller passes when waiting for a
job (for example "[HeadshotScreen]"). It is carried in a contextvar so every
line logged while that wait is in progress is tagged, including lines from
the poller and the gateway. It never influences behavior.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

trace_tag_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "trace_tag", default="-"
)

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s %(trace_tag)s: %(message)s"


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    return logging.getLevelNamesMapping().get(key, logging.INFO)


@contextmanager
def trace_tag(tag: Optional[str]) -> Iterator[None]:
    """Bind a trace tag for the current task; no-op when tag is empty."""
    if not tag:
        yield
        return
    token = trace_tag_var.set(tag)
    try:
        yield
    finally:
        trace_tag_var.reset(token)


class _TraceTagFilter(logging.Filter):
    """Inject trace tag from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple
        record.trace_tag = trace_tag_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno <= self.max_level


def _sink(stream, min_level: int, max_level: Optional[int], formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setLevel(min_level)
    if max_level is not None:
        handler.addFilter(_MaxLevelFilter(max_level))
    handler.addFilter(_TraceTagFilter())
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: int | str | None = None, fmt: Optional[str] = None) -> None:
    """Route DEBUG/INFO to stdout and WARNING+ to stderr on the root logger.

    Existing root handlers are removed first, so repeated calls do not stack.
    """
    numeric_level = coerce_level(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.addHandler(_sink(sys.stdout, logging.DEBUG, logging.INFO, formatter))
    root.addHandler(_sink(sys.stderr, logging.WARNING, None, formatter))

    # aiohttp client chatter stays at warning unless explicitly debugging
    if numeric_level > logging.DEBUG:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("aijobs").debug("Logging configured level=%s", numeric_level)
