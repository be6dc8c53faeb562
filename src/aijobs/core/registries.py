"""Process-wide registries shared by every poller.

Both registries are plain objects built once by the composition root and
injected into the poller and orchestrator. State lives as long as the
registry object; nothing is persisted.

Mutations take a `threading.Lock` so check-and-set stays atomic even when
pollers run on several event loops or worker threads.
"""

from __future__ import annotations

import threading
from typing import Dict, Set

from aijobs.core.settings import logger

CIRCUIT_BREAKER_THRESHOLD = 5


class CircuitBreakerRegistry:
    """Consecutive job-store read failures per job id.

    Only read failures count. A job whose status is `failed` is a successful
    observation and clears the entry. There is no time based reset: an entry
    is cleared by a terminal read or an explicit `reset`.
    """

    def __init__(self, threshold: int = CIRCUIT_BREAKER_THRESHOLD) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self.threshold = threshold
        self._failures: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record_failure(self, job_id: str) -> int:
        with self._lock:
            count = self._failures.get(job_id, 0) + 1
            self._failures[job_id] = count
        if count == self.threshold:
            logger.warning(f"[circuit] opened job_id={job_id} failures={count}")
        return count

    def record_success(self, job_id: str) -> None:
        with self._lock:
            cleared = self._failures.pop(job_id, None)
        if cleared:
            logger.debug(f"[circuit] cleared job_id={job_id} previous_failures={cleared}")

    def is_open(self, job_id: str) -> bool:
        with self._lock:
            return self._failures.get(job_id, 0) >= self.threshold

    def failure_count(self, job_id: str) -> int:
        with self._lock:
            return self._failures.get(job_id, 0)

    def reset(self, job_id: str) -> None:
        with self._lock:
            self._failures.pop(job_id, None)


class PollRegistry:
    """Set of job ids with a poll loop currently in flight."""

    def __init__(self) -> None:
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    def try_acquire(self, job_id: str) -> bool:
        with self._lock:
            if job_id in self._in_flight:
                return False
            self._in_flight.add(job_id)
            return True

    def release(self, job_id: str) -> None:
        with self._lock:
            self._in_flight.discard(job_id)

    def is_polling(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._in_flight

    def __contains__(self, job_id: object) -> bool:
        return isinstance(job_id, str) and self.is_polling(job_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._in_flight)
