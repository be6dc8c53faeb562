"""Concrete observer implementations for job lifecycle events."""

import logging

from aijobs.core.exceptions import PollingTimeoutError
from aijobs.core.models.job import AIJob, JobStatus


logger = logging.getLogger(__name__)


class LoggingObserver:
    """Writes one line per lifecycle event.

    Timeouts are logged at info level: the outcome is unknown and the job may
    still finish server-side. Failed jobs carry the job's own error message.
    """

    async def on_job_created(self, job: AIJob) -> None:
        logger.info(f"[observer:log] created job_id={job.id} job_type={job.job_type} owner_id={job.owner_id}")

    async def on_job_completed(self, job: AIJob) -> None:
        if job.status == JobStatus.failed:
            logger.info(
                f"[observer:log] job failed job_id={job.id} job_type={job.job_type} "
                f"policy_block={job.is_policy_blocked()} error={job.error}"
            )
        else:
            logger.info(f"[observer:log] job succeeded job_id={job.id} job_type={job.job_type}")

    async def on_job_unresolved(self, job_id: str, error: Exception) -> None:
        if isinstance(error, PollingTimeoutError):
            logger.info(f"[observer:log] still processing job_id={job_id} attempts={error.attempts}")
        else:
            logger.warning(f"[observer:log] unresolved job_id={job_id} error={type(error).__name__}: {error}")
