from abc import ABC, abstractmethod


class LoggingPort(ABC):
    """Minimal logger surface the core depends on.

    Messages use %-style placeholders; arguments are formatted lazily by the
    adapter so disabled levels cost nothing.
    """

    @abstractmethod
    def debug(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def info(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def warning(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def error(self, msg: str, *args) -> None:
        pass
