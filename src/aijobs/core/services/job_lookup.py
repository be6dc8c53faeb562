"""Find a caller's in-flight or just-finished job for an entity.

A screen that reopens while a generation is running uses these to pick the
job up again (and hand its id to `JobOrchestrator.wait`) instead of
creating a duplicate.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from aijobs.core.interfaces.job_repository import JobRepositoryPort
from aijobs.core.models.job import ACTIVE_STATUSES, TERMINAL_STATUSES, AIJob, JobType

JobPredicate = Callable[[AIJob], bool]

RECENT_JOB_WINDOW = timedelta(seconds=60)
LOOKUP_LIMIT = 10

RESULT_IMAGE_KEYS = ("image_id", "generated_image_id", "output_image_id")


def _first_str(payload: Any, keys) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value if isinstance(value, str) else None
    return None


def input_matches(*keys: str, value: str) -> JobPredicate:
    """Predicate: the first present input key among `keys` equals `value`.

    Different job types name the same entity differently (`item_id` vs
    `wardrobe_item_id`); pass all spellings in priority order.
    """
    def predicate(job: AIJob) -> bool:
        return _first_str(job.input, keys) == value

    return predicate


def result_image_id(job: AIJob) -> Optional[str]:
    """Image id produced by a succeeded job, whichever key the runner used."""
    return _first_str(job.result, RESULT_IMAGE_KEYS)


def match_any(job: AIJob) -> bool:
    return True


async def find_active_job(
    job_repo: JobRepositoryPort,
    owner_id: str,
    job_type: JobType,
    predicate: JobPredicate = match_any,
) -> Optional[AIJob]:
    """Newest queued or running job among the owner's last few that matches."""
    jobs = await job_repo.list(owner_id, job_type, statuses=ACTIVE_STATUSES, limit=LOOKUP_LIMIT)
    return next((job for job in jobs if predicate(job)), None)


async def find_recent_job(
    job_repo: JobRepositoryPort,
    owner_id: str,
    job_type: JobType,
    predicate: JobPredicate = match_any,
    window: timedelta = RECENT_JOB_WINDOW,
    now: Optional[datetime] = None,
) -> Optional[AIJob]:
    """Newest terminal job updated within `window` that matches."""
    since = (now or datetime.now(timezone.utc)) - window
    jobs = await job_repo.list(
        owner_id,
        job_type,
        statuses=TERMINAL_STATUSES,
        updated_since=since,
        limit=LOOKUP_LIMIT,
    )
    return next((job for job in jobs if predicate(job)), None)
