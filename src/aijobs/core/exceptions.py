from typing import Optional

from aijobs.core.models.job import JobStatus
from aijobs.core.models.upstream_error import UpstreamErrorResponse


class AIJobError(Exception):
    """Base exception for job orchestration failures.

    Attributes:
        message: Human-readable error description
        job_id: Optional job identifier
    """
    def __init__(self, message: str, job_id: Optional[str] = None):
        self.message = message
        self.job_id = job_id
        super().__init__(message)


class UpstreamError(AIJobError):
    """Raised when the job store or the runner endpoint cannot be reached or
    answers with an error status."""
    def __init__(self, response: UpstreamErrorResponse, job_id: Optional[str] = None):
        self.response = response
        super().__init__(str(response), job_id=job_id)


class JobCreationError(AIJobError):
    """Raised when the job store refuses to create a job.

    Fatal to the orchestration flow: no job id exists to poll.
    """
    def __init__(self, message: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(message)


class JobNotFoundError(AIJobError):
    """Raised by a read when the store has no record for the job id."""
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found", job_id=job_id)


class TriggerError(AIJobError):
    """Base for local, synchronous trigger failures (no request was sent)."""


class MissingCredentialError(TriggerError):
    def __init__(self, job_id: Optional[str] = None):
        super().__init__("No active session", job_id=job_id)


class TriggerConfigurationError(TriggerError):
    def __init__(self, base_url: str, job_id: Optional[str] = None):
        self.base_url = base_url
        super().__init__("Invalid job runner URL configuration", job_id=job_id)


class CircuitOpenError(AIJobError):
    """Raised before any read when a job id has too many consecutive read failures."""
    def __init__(self, job_id: str, failure_count: int):
        self.failure_count = failure_count
        super().__init__(
            f"Circuit breaker open for job {job_id}: {failure_count} consecutive read failures",
            job_id=job_id,
        )


class AlreadyPollingError(AIJobError):
    """Raised when another caller already owns the poll loop for a job id."""
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} is already being polled", job_id=job_id)


class PollingTimeoutError(AIJobError):
    """Raised when the attempt budget is exhausted before a terminal state.

    The outcome is unknown, not failed: the job may still finish server-side.

    Attributes:
        attempts: Number of reads performed
        last_status: Status seen by the last read
    """
    def __init__(self, job_id: str, attempts: int, last_status: Optional[JobStatus] = None):
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            f"Polling timeout for job {job_id} after {attempts} attempts (last status: {last_status})",
            job_id=job_id,
        )
