from typing import Any, Awaitable, Callable, Protocol


class RetryPort(Protocol):
    """Runs an async callable again when it fails with a retryable error.

    The completion resolver uses it to start another resolve round after a
    round ended in a polling timeout.
    """
    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:  # pragma: no cover - protocol
        """Call `func(*args, **kwargs)` until it returns or the policy gives up.

        Keyword overrides (all optional, removed before calling `func`):
            attempts: Maximum number of calls; None keeps calling
            wait_initial / wait_max: Backoff between calls; 0 means no wait
            exception_types: Exceptions that allow another call

        Any other exception, or the last one once attempts run out, is raised.
        """
        ...
