"""CompletionResolver: poll, then one final read if polling timed out.

The final check covers the narrow race where the job finished between the
last poll attempt and the timeout. It is a single read, not another loop.
"""

from __future__ import annotations

from typing import Optional

from aijobs.core.exceptions import PollingTimeoutError
from aijobs.core.interfaces.job_repository import JobRepositoryPort
from aijobs.core.interfaces.retry import RetryPort
from aijobs.core.logging_config import trace_tag
from aijobs.core.managers.poller import AdaptivePoller
from aijobs.core.models.job import AIJob
from aijobs.core.settings import logger


class CompletionResolver:
    def __init__(
        self,
        poller: AdaptivePoller,
        job_repo: JobRepositoryPort,
        retry_port: Optional[RetryPort] = None,
    ) -> None:
        self._poller = poller
        self._repo = job_repo
        self._retry = retry_port

    async def resolve(
        self,
        job_id: str,
        max_attempts: Optional[int] = None,
        initial_interval: Optional[float] = None,
        log_prefix: Optional[str] = None,
    ) -> AIJob:
        """Return the terminal job or raise.

        Only PollingTimeoutError triggers the final check; every other poll
        error (circuit open, already polling, read error) propagates as is.
        If the final check finds no terminal job, or fails itself, the
        timeout error from polling is re-raised.
        """
        with trace_tag(log_prefix):
            try:
                return await self._poller.poll(job_id, max_attempts, initial_interval)
            except PollingTimeoutError as timeout_error:
                logger.info(f"[job:resolve] polling timed out, doing final check job_id={job_id}")
                final = await self._final_check(job_id)
                if final is not None and final.is_terminal():
                    logger.info(
                        f"[job:resolve] final check found terminal job job_id={job_id} status={final.status}"
                    )
                    return final
                raise timeout_error

    async def _final_check(self, job_id: str) -> Optional[AIJob]:
        try:
            return await self._repo.get(job_id)
        except Exception as exc:
            logger.warning(f"[job:resolve] final check read failed job_id={job_id} error={exc}")
            return None

    async def wait_for_completion(
        self,
        job_id: str,
        max_attempts: Optional[int] = None,
        initial_interval: Optional[float] = None,
        log_prefix: Optional[str] = None,
        max_rounds: Optional[int] = None,
    ) -> AIJob:
        """Keep resolving while the outcome stays unknown.

        Each round is a full `resolve` (poll budget plus final check). Rounds
        repeat only on PollingTimeoutError, at most `max_rounds` times
        (None = until the job is terminal or another error occurs).
        """

        async def one_round() -> AIJob:
            try:
                return await self.resolve(job_id, max_attempts, initial_interval, log_prefix)
            except PollingTimeoutError:
                with trace_tag(log_prefix):
                    logger.info(f"[job:resolve] still not terminal, continuing to wait job_id={job_id}")
                raise

        if self._retry is None:
            # Fallback: single round without retry
            return await one_round()
        return await self._retry.execute(
            one_round,
            attempts=max_rounds,
            wait_initial=0,
            wait_max=0,
            exception_types=(PollingTimeoutError,),
        )
