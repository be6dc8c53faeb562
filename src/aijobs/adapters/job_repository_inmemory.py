"""In-memory implementation of JobRepositoryPort.

Async-safe using an asyncio.Lock. Suitable for tests and local runs; it also
lets a test stand in for the backend by flipping job statuses.
"""
from __future__ import annotations

import asyncio
import uuid
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Sequence

from aijobs.core.exceptions import JobNotFoundError
from aijobs.core.interfaces.job_repository import JobRepositoryPort
from aijobs.core.models.job import AIJob, JobStatus, JobType

# records put without timestamps sort last
_MISSING_TIME = datetime.min.replace(tzinfo=timezone.utc)


class InMemoryJobRepository(JobRepositoryPort):
    def __init__(self) -> None:
        self._jobs: Dict[str, AIJob] = {}
        self._lock = asyncio.Lock()

    async def create(self, owner_id: str, job_type: JobType, input: Any) -> AIJob:
        async with self._lock:
            now = datetime.now(timezone.utc)
            job = AIJob(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                job_type=job_type,
                input=deepcopy(input),
                status=JobStatus.queued,
                created_at=now,
                updated_at=now,
            )
            self._jobs[job.id] = job
            return job.model_copy(deep=True)

    async def get(self, job_id: str) -> AIJob:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            return job.model_copy(deep=True)

    async def list(
        self,
        owner_id: str,
        job_type: JobType,
        statuses: Optional[Iterable[JobStatus]] = None,
        updated_since: Optional[datetime] = None,
        limit: int = 10,
    ) -> Sequence[AIJob]:
        wanted = set(statuses) if statuses else None
        async with self._lock:
            jobs = [
                j for j in self._jobs.values()
                if j.owner_id == owner_id and j.job_type == job_type
            ]
        if wanted is not None:
            jobs = [j for j in jobs if j.status in wanted]
        if updated_since is not None:
            jobs = [j for j in jobs if j.updated_at and j.updated_at >= updated_since]
            jobs.sort(key=lambda j: j.updated_at or _MISSING_TIME, reverse=True)
        else:
            jobs.sort(key=lambda j: j.created_at or _MISSING_TIME, reverse=True)
        return [j.model_copy(deep=True) for j in jobs[:limit]]

    # Backend simulation (not part of the port)
    async def put(self, job: AIJob) -> None:
        async with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)

    async def set_status(
        self,
        job_id: str,
        status: JobStatus,
        result: Any = None,
        error: Optional[str] = None,
    ) -> AIJob:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            updated = job.model_copy(
                update={
                    "status": status,
                    "result": result,
                    "error": error,
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            self._jobs[job_id] = updated
            return updated.model_copy(deep=True)
