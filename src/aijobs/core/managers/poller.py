"""AdaptivePoller: reads a job until it is terminal, backing off between reads.

Guards, in order, before any read:
1. circuit breaker open for the id -> CircuitOpenError
2. another loop already polls the id -> AlreadyPollingError

Once the id is acquired it is released exactly once on every exit path,
including task cancellation during the backoff sleep.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from aijobs.core.config import PollingConfig
from aijobs.core.exceptions import (
    AlreadyPollingError,
    CircuitOpenError,
    PollingTimeoutError,
)
from aijobs.core.interfaces.job_repository import JobRepositoryPort
from aijobs.core.models.job import AIJob, JobStatus
from aijobs.core.registries import CircuitBreakerRegistry, PollRegistry
from aijobs.core.settings import logger

SleepFunc = Callable[[float], Awaitable[None]]

# log every Nth non-terminal attempt at debug level
_ATTEMPT_LOG_EVERY = 5


def backoff_intervals(initial_interval: float, max_interval: float):
    """Yield the doubling sleep sequence, capped at max_interval."""
    interval = initial_interval
    while True:
        yield interval
        interval = min(interval * 2, max_interval)


class AdaptivePoller:
    """Polls the job store for one job id per `poll` call.

    Attributes:
        config: Default attempt budget and backoff bounds
    """

    def __init__(
        self,
        job_repo: JobRepositoryPort,
        circuit: CircuitBreakerRegistry,
        registry: PollRegistry,
        config: Optional[PollingConfig] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._repo = job_repo
        self._circuit = circuit
        self._registry = registry
        self.config = config or PollingConfig()
        self._sleep = sleep

    async def poll(
        self,
        job_id: str,
        max_attempts: Optional[int] = None,
        initial_interval: Optional[float] = None,
    ) -> AIJob:
        """Return the job once it is `succeeded` or `failed`.

        A failed job is returned, not raised: observing a failed generation is
        a successful poll. Read errors are recorded against the circuit breaker
        and re-raised unchanged without retrying. Exhausting the attempt
        budget raises PollingTimeoutError.
        """
        max_attempts = self.config.max_attempts if max_attempts is None else max_attempts
        initial_interval = (
            self.config.initial_interval if initial_interval is None else initial_interval
        )
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if initial_interval <= 0:
            raise ValueError("initial_interval must be > 0")

        if self._circuit.is_open(job_id):
            failures = self._circuit.failure_count(job_id)
            logger.warning(f"[job:poll] circuit open, refusing to poll job_id={job_id} failures={failures}")
            raise CircuitOpenError(job_id, failures)

        if not self._registry.try_acquire(job_id):
            logger.debug(f"[job:poll] already polling job_id={job_id}")
            raise AlreadyPollingError(job_id)

        try:
            return await self._poll_loop(job_id, max_attempts, initial_interval)
        finally:
            self._registry.release(job_id)

    async def _poll_loop(self, job_id: str, max_attempts: int, initial_interval: float) -> AIJob:
        intervals = backoff_intervals(initial_interval, self.config.max_interval)
        last_status: Optional[JobStatus] = None

        for attempt in range(1, max_attempts + 1):
            try:
                job = await self._repo.get(job_id)
            except Exception as exc:
                failures = self._circuit.record_failure(job_id)
                logger.warning(
                    f"[job:poll] read failed job_id={job_id} attempt={attempt} failures={failures} error={exc}"
                )
                raise

            last_status = job.status
            if job.is_terminal():
                # a failed job is not a read failure
                self._circuit.record_success(job_id)
                logger.info(
                    f"[job:poll] terminal job_id={job_id} status={job.status} attempt={attempt} job_type={job.job_type}"
                )
                return job

            if attempt % _ATTEMPT_LOG_EVERY == 1:
                logger.debug(
                    f"[job:poll] attempt={attempt}/{max_attempts} job_id={job_id} status={job.status}"
                )

            if attempt < max_attempts:
                await self._sleep(next(intervals))

        logger.warning(
            f"[job:poll] timeout job_id={job_id} attempts={max_attempts} last_status={last_status}"
        )
        raise PollingTimeoutError(job_id, max_attempts, last_status)
