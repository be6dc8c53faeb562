"""Shared fakes for the job core tests.

- `make_job`: builds AIJob fixtures (including ones that omit result/error)
- `fake_clock`: sleep replacement that records requested intervals and
  advances a virtual clock instead of waiting
- `scripted_repo`: JobRepositoryPort whose reads replay a script of jobs
  and exceptions, stamping each read with the virtual time
- `counting_registry`: PollRegistry that counts acquisitions and releases
"""

import asyncio
from typing import Any, List, Optional, Sequence

import pytest

from aijobs.core.exceptions import JobNotFoundError
from aijobs.core.interfaces.job_repository import JobRepositoryPort
from aijobs.core.models.job import AIJob, JobStatus, JobType
from aijobs.core.registries import PollRegistry


def _make_job(
    status: JobStatus = JobStatus.queued,
    job_id: str = "job-1",
    result: Any = None,
    error: Optional[str] = None,
    job_type: JobType = JobType.headshot_generate,
    owner_id: str = "user-1",
    input: Any = None,
) -> AIJob:
    return AIJob(
        id=job_id,
        owner_id=owner_id,
        job_type=job_type,
        input=input if input is not None else {"selfie_image_id": "selfie-1"},
        status=status,
        result=result,
        error=error,
    )


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        # still yield to the loop like a real sleep would
        await asyncio.sleep(0)


class ScriptedJobRepository(JobRepositoryPort):
    """Reads replay `script` in order; the last entry repeats forever."""

    def __init__(self, script: Sequence[Any], clock: Optional[FakeClock] = None) -> None:
        if not script:
            raise ValueError("script must not be empty")
        self.script = list(script)
        self.clock = clock
        self.reads = 0
        self.read_times: List[float] = []

    async def create(self, owner_id, job_type, input) -> AIJob:
        return _make_job(JobStatus.queued, owner_id=owner_id, job_type=job_type, input=input)

    async def get(self, job_id: str) -> AIJob:
        step = self.script[min(self.reads, len(self.script) - 1)]
        self.reads += 1
        if self.clock is not None:
            self.read_times.append(self.clock.now)
        if isinstance(step, BaseException):
            raise step
        if step is None:
            raise JobNotFoundError(job_id)
        return step.model_copy(update={"id": job_id})

    async def list(self, owner_id, job_type, statuses=None, updated_since=None, limit=10):
        return []


class CountingPollRegistry(PollRegistry):
    def __init__(self) -> None:
        super().__init__()
        self.acquired = 0
        self.released = 0

    def try_acquire(self, job_id: str) -> bool:
        ok = super().try_acquire(job_id)
        if ok:
            self.acquired += 1
        return ok

    def release(self, job_id: str) -> None:
        self.released += 1
        super().release(job_id)


@pytest.fixture
def make_job():
    return _make_job


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def scripted_repo(fake_clock):
    def factory(*script):
        return ScriptedJobRepository(script, clock=fake_clock)
    return factory


@pytest.fixture
def counting_registry():
    return CountingPollRegistry()
