from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(StrEnum):
    queued = "queued"
    running = "running"
    succeeded = "succeeded"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.succeeded, JobStatus.failed})
ACTIVE_STATUSES = frozenset({JobStatus.queued, JobStatus.running})


class JobType(StrEnum):
    auto_tag = "auto_tag"
    product_shot = "product_shot"
    headshot_generate = "headshot_generate"
    body_shot_generate = "body_shot_generate"
    outfit_suggest = "outfit_suggest"
    reference_match = "reference_match"
    outfit_render = "outfit_render"
    outfit_mannequin = "outfit_mannequin"
    lookbook_generate = "lookbook_generate"
    batch = "batch"
    wardrobe_item_render = "wardrobe_item_render"
    wardrobe_item_tag = "wardrobe_item_tag"
    wardrobe_item_generate = "wardrobe_item_generate"


# Substrings (lowercase) that the generation backend puts into failure
# messages when a request was blocked by a safety filter.
POLICY_BLOCK_PATTERNS = (
    "safety",
    "blocked",
    "policy",
    "harassment",
    "sexually explicit",
    "dangerous content",
    "generation blocked",
    "safety block",
)


def is_policy_block_error(message: Optional[str]) -> bool:
    """Return True when a job error message looks like a content policy block."""
    if not message:
        return False
    normalized = message.lower()
    return any(pattern in normalized for pattern in POLICY_BLOCK_PATTERNS)


class AIJob(BaseModel):
    """A unit of server-executed AI work as stored in the job store.

    Notes:
    - `owner_id` is stored as `owner_user_id`; both names are accepted on input.
    - `input` and `result` are opaque payloads; the orchestration core never
      inspects them.
    - `result` is expected only for `succeeded` and `error` only for `failed`,
      but neither is enforced: the status tag alone decides terminality.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    owner_id: str = Field(alias="owner_user_id")
    job_type: JobType
    input: Any = None
    status: JobStatus = JobStatus.queued
    result: Any = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # set by the store once the user left feedback for this job
    feedback_at: Optional[datetime] = None

    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_policy_blocked(self) -> bool:
        return self.status == JobStatus.failed and is_policy_block_error(self.error)
