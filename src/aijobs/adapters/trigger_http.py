"""HTTP execution trigger: asks the job runner function to start a job.

Fire-and-forget. `trigger` validates locally, schedules the POST on a
background task and returns. The task's outcome (2xx, error status,
timeout, connection error) only ever reaches the log. A job whose trigger
was lost is still picked up by the runner's own sweep, and the caller's
poll will tell whether it ever started.
"""

from __future__ import annotations

import asyncio
from typing import Set

from aijobs.core.config import TriggerConfig
from aijobs.core.exceptions import (
    MissingCredentialError,
    TriggerConfigurationError,
    UpstreamError,
)
from aijobs.core.interfaces.credentials import CredentialsPort
from aijobs.core.interfaces.http_client import HttpClientPort
from aijobs.core.interfaces.trigger import TriggerPort
from aijobs.core.settings import logger


class HttpExecutionTrigger(TriggerPort):
    def __init__(
        self,
        http_client: HttpClientPort,
        credentials: CredentialsPort,
        config: TriggerConfig,
    ) -> None:
        self._http = http_client
        self._credentials = credentials
        self.config = config
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _validate_base_url(self, job_id: str) -> None:
        base_url = self.config.base_url
        if base_url and not base_url.startswith(("http://", "https://")):
            logger.error(f"[job:trigger] invalid runner base_url={base_url}")
            raise TriggerConfigurationError(base_url, job_id=job_id)

    async def trigger(self, job_id: str) -> None:
        token = await self._credentials.get_access_token()
        if not token:
            raise MissingCredentialError(job_id=job_id)
        self._validate_base_url(job_id)

        url = self.config.function_url
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        logger.debug(f"[job:trigger] dispatching job_id={job_id} url={url}")
        task = asyncio.create_task(self._dispatch(job_id, url, headers))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _dispatch(self, job_id: str, url: str, headers: dict) -> None:
        try:
            async with asyncio.timeout(self.config.timeout):
                resp = await self._http.post(
                    url,
                    json={"job_id": job_id},
                    timeout=self.config.timeout,
                    headers=headers,
                )
        except (asyncio.TimeoutError, TimeoutError):
            self._log_timeout(job_id)
            return
        except UpstreamError as exc:
            if exc.response.status == 504:
                self._log_timeout(job_id)
                return
            logger.error(
                f"[job:trigger] failed to trigger job execution job_id={job_id} url={url} "
                f"status={exc.response.status} title={exc.response.title}"
            )
            return
        except Exception as exc:
            # the outcome is consumed only by the log
            logger.error(f"[job:trigger] unexpected error job_id={job_id} url={url} error={exc!r}")
            return

        status = resp.get("status", 0)
        if status >= 400:
            body = resp.get("body")
            logger.warning(
                f"[job:trigger] runner returned non-OK response job_id={job_id} "
                f"status={status} body={str(body)[:200]}"
            )
        else:
            logger.debug(f"[job:trigger] runner accepted job_id={job_id} status={status}")

    def _log_timeout(self, job_id: str) -> None:
        logger.info(
            f"[job:trigger] trigger timed out after {self.config.timeout}s job_id={job_id} "
            "(expected for long-running jobs), will poll for status"
        )

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.drain()
