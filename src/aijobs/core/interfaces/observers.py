"""Observer protocol for job lifecycle events.

Observers decouple side effects (UI notification, metrics, audit) from the
orchestration flow. The orchestrator calls them for every job it creates or
resolves; an exception raised by an observer is logged and swallowed.
"""

from typing import Protocol

from aijobs.core.models.job import AIJob


class JobStateObserver(Protocol):
    """Observer protocol for job lifecycle events.

    - on_job_created: after the store accepted the job (before the trigger)
    - on_job_completed: after a terminal record was observed (succeeded or failed)
    - on_job_unresolved: after resolution ended without a terminal record
      (timeout, circuit open, read error)
    """

    async def on_job_created(self, job: AIJob) -> None:
        ...

    async def on_job_completed(self, job: AIJob) -> None:
        ...

    async def on_job_unresolved(self, job_id: str, error: Exception) -> None:
        ...
