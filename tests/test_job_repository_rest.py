"""Tests for the PostgREST-style job repository against a mocked store."""

import re
from datetime import datetime, timezone

import pytest
from aioresponses import aioresponses

from aijobs.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from aijobs.adapters.credentials_static import StaticCredentialsAdapter
from aijobs.adapters.job_repository_rest import NO_STORE_HEADERS, RestJobRepository
from aijobs.core.config import StoreConfig
from aijobs.core.exceptions import JobCreationError, JobNotFoundError, UpstreamError
from aijobs.core.models.job import JobStatus, JobType

STORE_URL = "http://store.test"
TABLE_URL = f"{STORE_URL}/rest/v1/ai_jobs"
TABLE_PATTERN = re.compile(rf"^{re.escape(TABLE_URL)}(\?.*)?$")


def _row(**overrides):
    row = {
        "id": "job-1",
        "owner_user_id": "user-1",
        "job_type": "headshot_generate",
        "input": {"selfie_image_id": "selfie-1"},
        "status": "queued",
        "result": None,
        "error": None,
        "created_at": "2024-05-01T10:00:00+00:00",
        "updated_at": "2024-05-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def _calls(m):
    return [(key[1], call) for key, calls in m.requests.items() for call in calls]


@pytest.fixture
def config():
    return StoreConfig(base_url=STORE_URL)


@pytest.mark.asyncio
async def test_create_posts_row_and_parses_representation(config):
    with aioresponses() as m:
        m.post(TABLE_URL, status=201, payload=[_row()])

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "token-1"), config)
            job = await repo.create("user-1", JobType.headshot_generate, {"selfie_image_id": "selfie-1"})

        assert job.id == "job-1"
        assert job.owner_id == "user-1"
        assert job.status == JobStatus.queued

        ((_, call),) = _calls(m)
        assert call.kwargs["json"] == {
            "owner_user_id": "user-1",
            "job_type": "headshot_generate",
            "input": {"selfie_image_id": "selfie-1"},
            "status": "queued",
        }
        headers = call.kwargs["headers"]
        assert headers["Prefer"] == "return=representation"
        assert headers["apikey"] == "anon"
        assert headers["Authorization"] == "Bearer token-1"


@pytest.mark.asyncio
async def test_create_rejected_raises_creation_error(config):
    with aioresponses() as m:
        m.post(TABLE_URL, status=403, payload={"message": "new row violates row-level security policy"})

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "token-1"), config)
            with pytest.raises(JobCreationError) as excinfo:
                await repo.create("user-1", JobType.auto_tag, {})

    assert excinfo.value.upstream_status == 403
    assert "row-level security" in str(excinfo.value)


@pytest.mark.asyncio
async def test_create_without_row_in_response(config):
    with aioresponses() as m:
        m.post(TABLE_URL, status=201, payload=[])

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "token-1"), config)
            with pytest.raises(JobCreationError):
                await repo.create("user-1", JobType.auto_tag, {})


@pytest.mark.asyncio
async def test_get_uses_no_store_headers_and_parses_row(config):
    with aioresponses() as m:
        m.get(TABLE_PATTERN, payload=[_row(status="succeeded", result={"image_id": "img-1"})])

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", None), config)
            job = await repo.get("job-1")

        assert job.status == JobStatus.succeeded
        assert job.result == {"image_id": "img-1"}

        ((url, call),) = _calls(m)
        assert url.query["id"] == "eq.job-1"
        headers = call.kwargs["headers"]
        for key, value in NO_STORE_HEADERS.items():
            assert headers[key] == value
        # no session: the project key stands in as bearer
        assert headers["Authorization"] == "Bearer anon"


@pytest.mark.asyncio
async def test_get_missing_row_raises_not_found(config):
    with aioresponses() as m:
        m.get(TABLE_PATTERN, payload=[])

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "t"), config)
            with pytest.raises(JobNotFoundError) as excinfo:
                await repo.get("job-404")

    assert excinfo.value.job_id == "job-404"


@pytest.mark.asyncio
async def test_get_malformed_row_is_upstream_error(config):
    with aioresponses() as m:
        m.get(TABLE_PATTERN, payload=[{"id": "job-1", "status": "exploded"}])

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "t"), config)
            with pytest.raises(UpstreamError) as excinfo:
                await repo.get("job-1")

    assert excinfo.value.response.status == 502
    assert excinfo.value.response.title == "Invalid Job Record"


@pytest.mark.asyncio
async def test_get_store_error_propagates(config):
    with aioresponses() as m:
        m.get(TABLE_PATTERN, status=500, payload={"message": "db down"})

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "t"), config)
            with pytest.raises(UpstreamError) as excinfo:
                await repo.get("job-1")

    assert excinfo.value.response.status == 500


@pytest.mark.asyncio
async def test_list_active_orders_by_creation(config):
    with aioresponses() as m:
        m.get(TABLE_PATTERN, payload=[_row(id="job-2", status="running"), _row(id="job-1")])

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "t"), config)
            jobs = await repo.list(
                "user-1", JobType.headshot_generate, statuses=[JobStatus.running, JobStatus.queued], limit=10
            )

        assert [j.id for j in jobs] == ["job-2", "job-1"]
        ((url, _),) = _calls(m)
        assert url.query["owner_user_id"] == "eq.user-1"
        assert url.query["job_type"] == "eq.headshot_generate"
        assert url.query["status"] == "in.(queued,running)"
        assert url.query["order"] == "created_at.desc"
        assert url.query["limit"] == "10"


@pytest.mark.asyncio
async def test_list_recent_filters_on_update_time(config):
    since = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)
    with aioresponses() as m:
        m.get(TABLE_PATTERN, payload=[])

        async with AioHttpClientAdapter() as client:
            repo = RestJobRepository(client, StaticCredentialsAdapter("anon", "t"), config)
            jobs = await repo.list(
                "user-1",
                JobType.product_shot,
                statuses=[JobStatus.succeeded, JobStatus.failed],
                updated_since=since,
                limit=5,
            )

        assert jobs == []
        ((url, _),) = _calls(m)
        assert url.query["updated_at"].startswith("gte.2024-05-01T10:00:00")
        assert url.query["order"] == "updated_at.desc"
        assert url.query["status"] == "in.(failed,succeeded)"
        assert url.query["limit"] == "5"
