"""JobRepositoryPort: hexagonal port for the remote AI job store.

Pure data access. Adapters never retry and never cache: every `get` is a
fresh read so pollers always observe the latest status.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from aijobs.core.models.job import AIJob, JobStatus, JobType


class JobRepositoryPort(ABC):
	"""Port abstraction for creating and reading AI jobs."""

	@abstractmethod
	async def create(self, owner_id: str, job_type: JobType, input: Any) -> AIJob:
		"""Insert a new job with status `queued` and return the stored record."""
		raise NotImplementedError

	@abstractmethod
	async def get(self, job_id: str) -> AIJob:
		"""Return the current job record.

		Raises JobNotFoundError when the store has no such record.
		"""
		raise NotImplementedError

	@abstractmethod
	async def list(
		self,
		owner_id: str,
		job_type: JobType,
		statuses: Optional[Iterable[JobStatus]] = None,
		updated_since: Optional[datetime] = None,
		limit: int = 10,
	) -> Sequence[AIJob]:
		"""List an owner's jobs of one type, newest first.

		Ordered by `updated_at` when `updated_since` is given, else by `created_at`.
		"""
		raise NotImplementedError
