"""Tests for the fire-and-forget execution trigger.

`trigger` must return before the runner answers; whatever the runner does
afterwards (2xx, error status, timeout) is only logged.
"""

import asyncio
import logging
from unittest.mock import AsyncMock

import aiohttp
import pytest
from aioresponses import aioresponses

from aijobs.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from aijobs.adapters.credentials_static import StaticCredentialsAdapter
from aijobs.adapters.trigger_http import HttpExecutionTrigger
from aijobs.core.config import TriggerConfig
from aijobs.core.exceptions import MissingCredentialError, TriggerConfigurationError

BASE_URL = "https://app.example.test"
RUNNER_URL = f"{BASE_URL}/.netlify/functions/ai-job-runner"


def _requests(m):
    return [call for calls in m.requests.values() for call in calls]


@pytest.fixture
def credentials():
    return StaticCredentialsAdapter("anon-key", "session-token")


@pytest.mark.asyncio
async def test_trigger_returns_before_dispatch_completes(credentials):
    with aioresponses() as m:
        m.post(RUNNER_URL, status=202, payload={"accepted": True})

        async with AioHttpClientAdapter() as client:
            trigger = HttpExecutionTrigger(client, credentials, TriggerConfig(base_url=BASE_URL))

            await trigger.trigger("job-1")
            assert trigger.pending == 1

            await trigger.drain()
            assert trigger.pending == 0

        (call,) = _requests(m)
        assert call.kwargs["json"] == {"job_id": "job-1"}
        assert call.kwargs["headers"]["Authorization"] == "Bearer session-token"
        assert call.kwargs["headers"]["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_error_status_is_logged_not_raised(credentials, caplog):
    caplog.set_level(logging.DEBUG, logger="aijobs")
    with aioresponses() as m:
        m.post(RUNNER_URL, status=500, body="boom", content_type="text/plain")

        async with AioHttpClientAdapter() as client:
            trigger = HttpExecutionTrigger(client, credentials, TriggerConfig(base_url=BASE_URL))
            await trigger.trigger("job-1")
            await trigger.drain()

    assert "runner returned non-OK response" in caplog.text
    assert "status=500" in caplog.text


@pytest.mark.asyncio
async def test_upstream_timeout_is_expected(credentials, caplog):
    caplog.set_level(logging.DEBUG, logger="aijobs")
    with aioresponses() as m:
        m.post(RUNNER_URL, exception=asyncio.TimeoutError())

        async with AioHttpClientAdapter() as client:
            trigger = HttpExecutionTrigger(client, credentials, TriggerConfig(base_url=BASE_URL))
            await trigger.trigger("job-1")
            await trigger.drain()

    timeout_records = [r for r in caplog.records if "will poll for status" in r.getMessage()]
    assert len(timeout_records) == 1
    assert timeout_records[0].levelno == logging.INFO


@pytest.mark.asyncio
async def test_dispatch_ceiling_applies_to_slow_runner(credentials, caplog):
    caplog.set_level(logging.DEBUG, logger="aijobs")

    async def never_answers(*args, **kwargs):
        await asyncio.Event().wait()

    http = AsyncMock()
    http.post = AsyncMock(side_effect=never_answers)
    trigger = HttpExecutionTrigger(http, credentials, TriggerConfig(base_url=BASE_URL, timeout=0.01))

    await trigger.trigger("job-1")
    await trigger.drain()

    assert "will poll for status" in caplog.text


@pytest.mark.asyncio
async def test_connection_error_is_logged(credentials, caplog):
    caplog.set_level(logging.DEBUG, logger="aijobs")
    with aioresponses() as m:
        m.post(RUNNER_URL, exception=aiohttp.ClientConnectionError("reset"))

        async with AioHttpClientAdapter() as client:
            trigger = HttpExecutionTrigger(client, credentials, TriggerConfig(base_url=BASE_URL))
            await trigger.trigger("job-1")
            await trigger.drain()

    assert any(r.levelno == logging.ERROR and "job_id=job-1" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_missing_session_raises_without_request():
    http = AsyncMock()
    trigger = HttpExecutionTrigger(
        http, StaticCredentialsAdapter("anon-key", None), TriggerConfig(base_url=BASE_URL)
    )

    with pytest.raises(MissingCredentialError) as excinfo:
        await trigger.trigger("job-1")

    assert excinfo.value.job_id == "job-1"
    assert str(excinfo.value) == "No active session"
    assert trigger.pending == 0
    http.post.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_token_counts_as_missing():
    trigger = HttpExecutionTrigger(
        AsyncMock(), StaticCredentialsAdapter("anon-key", ""), TriggerConfig(base_url=BASE_URL)
    )

    with pytest.raises(MissingCredentialError):
        await trigger.trigger("job-1")


@pytest.mark.asyncio
async def test_invalid_base_url_raises_configuration_error(credentials):
    http = AsyncMock()
    trigger = HttpExecutionTrigger(http, credentials, TriggerConfig(base_url="app.example.test"))

    with pytest.raises(TriggerConfigurationError) as excinfo:
        await trigger.trigger("job-1")

    assert excinfo.value.base_url == "app.example.test"
    http.post.assert_not_awaited()


@pytest.mark.asyncio
async def test_relative_url_when_base_is_empty(credentials):
    http = AsyncMock()
    http.post = AsyncMock(return_value={"status": 200, "headers": {}, "body": {}})
    trigger = HttpExecutionTrigger(http, credentials, TriggerConfig())

    await trigger.trigger("job-1")
    await trigger.drain()

    assert http.post.await_args.args[0] == "/.netlify/functions/ai-job-runner"


@pytest.mark.asyncio
async def test_close_cancels_in_flight_dispatches(credentials):
    started = asyncio.Event()

    async def never_answers(*args, **kwargs):
        started.set()
        await asyncio.Event().wait()

    http = AsyncMock()
    http.post = AsyncMock(side_effect=never_answers)
    trigger = HttpExecutionTrigger(http, credentials, TriggerConfig(base_url=BASE_URL, timeout=60))

    await trigger.trigger("job-1")
    await started.wait()
    await trigger.close()

    assert trigger.pending == 0
