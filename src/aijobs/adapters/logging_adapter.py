import logging

from aijobs.core.interfaces.logging import LoggingPort
from aijobs.core.logging_config import coerce_level


class LoggingAdapter(LoggingPort):
    """Concrete logging adapter.

    Delegates to Python's logging. It does NOT add its own handlers so that
    `configure_logging` controls sinks; the trace tag is injected by the root
    handlers' filter.
    """

    def __init__(self, name: str = "aijobs", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(coerce_level(log_level))
        # Let records reach the root handlers (separate sinks)
        self.logger.propagate = True

    def set_level(self, log_level: int | str) -> None:
        self.logger.setLevel(coerce_level(log_level))

    def debug(self, msg: str, *args) -> None:
        self.logger.debug(msg, *args)

    def info(self, msg: str, *args) -> None:
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args) -> None:
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args) -> None:
        self.logger.error(msg, *args)
