import pytest
from pydantic import ValidationError

from aijobs.core.exceptions import PollingTimeoutError
from aijobs.core.models.job import AIJob, JobStatus, JobType, is_policy_block_error


def test_store_row_uses_owner_user_id_alias():
    job = AIJob.model_validate(
        {
            "id": "job-1",
            "owner_user_id": "user-1",
            "job_type": "auto_tag",
            "input": {"image_ids": []},
            "status": "running",
            "some_new_column": "ignored",
        }
    )

    assert job.owner_id == "user-1"
    assert job.model_dump(by_alias=True)["owner_user_id"] == "user-1"


def test_owner_id_by_field_name():
    job = AIJob(id="job-1", owner_id="user-1", job_type=JobType.batch)

    assert job.status == JobStatus.queued
    assert job.result is None and job.error is None


def test_unknown_status_is_rejected():
    with pytest.raises(ValidationError):
        AIJob(id="job-1", owner_id="user-1", job_type="auto_tag", status="cancelled")


@pytest.mark.parametrize(
    "status, terminal",
    [
        (JobStatus.queued, False),
        (JobStatus.running, False),
        (JobStatus.succeeded, True),
        (JobStatus.failed, True),
    ],
)
def test_terminal_statuses(status, terminal):
    assert status.is_terminal is terminal
    assert AIJob(id="j", owner_id="u", job_type="auto_tag", status=status).is_terminal() is terminal


@pytest.mark.parametrize(
    "message, blocked",
    [
        ("Generation blocked by SAFETY filter", True),
        ("HARM_CATEGORY_HARASSMENT", True),
        ("Sexually explicit content detected", True),
        ("Model returned no image", False),
        ("", False),
        (None, False),
    ],
)
def test_policy_block_detection(message, blocked):
    assert is_policy_block_error(message) is blocked


def test_policy_block_only_for_failed_jobs():
    job = AIJob(id="j", owner_id="u", job_type="auto_tag", status=JobStatus.succeeded, error="safety")

    assert job.is_policy_blocked() is False


def test_timeout_error_keeps_last_status():
    error = PollingTimeoutError("job-1", 60, JobStatus.running)

    assert error.job_id == "job-1"
    assert "60 attempts" in str(error)
    assert error.last_status == JobStatus.running
