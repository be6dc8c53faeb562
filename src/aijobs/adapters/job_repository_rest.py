"""PostgREST-style implementation of JobRepositoryPort.

Talks to the `ai_jobs` table over the store's REST endpoint. Every request
carries the project key and the caller's bearer token (the anon key stands
in when no session token exists, which limits the caller to public rows).
Reads are sent with no-store cache headers so intermediaries never serve a
stale status to a poller.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote

from pydantic import ValidationError

from aijobs.core.config import StoreConfig
from aijobs.core.exceptions import JobCreationError, JobNotFoundError, UpstreamError
from aijobs.core.interfaces.credentials import CredentialsPort
from aijobs.core.interfaces.http_client import HttpClientPort
from aijobs.core.interfaces.job_repository import JobRepositoryPort
from aijobs.core.models.job import AIJob, JobStatus, JobType
from aijobs.core.models.upstream_error import UpstreamErrorResponse
from aijobs.core.settings import logger

NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


class RestJobRepository(JobRepositoryPort):
    def __init__(
        self,
        http_client: HttpClientPort,
        credentials: CredentialsPort,
        config: StoreConfig,
    ) -> None:
        self._http = http_client
        self._credentials = credentials
        self.config = config

    async def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        api_key = self._credentials.get_api_key()
        token = await self._credentials.get_access_token()
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {token or api_key}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _parse(self, row: Any, url: str) -> AIJob:
        try:
            return AIJob.model_validate(row)
        except ValidationError as exc:
            logger.error(f"[job:store] malformed job row url={url} error={exc}")
            raise UpstreamError(
                UpstreamErrorResponse(
                    title="Invalid Job Record",
                    status=502,
                    detail=f"The job store returned a record that is not a valid job: {exc.error_count()} errors",
                    url=url,
                )
            ) from exc

    def job_url(self, job_id: str) -> str:
        return f"{self.config.table_url}?id=eq.{quote(job_id, safe='')}&select=*"

    async def create(self, owner_id: str, job_type: JobType, input: Any) -> AIJob:
        url = self.config.table_url
        payload = {
            "owner_user_id": owner_id,
            "job_type": str(job_type),
            "input": input,
            "status": str(JobStatus.queued),
        }
        headers = await self._headers({"Prefer": "return=representation"})
        resp = await self._http.post(url, json=payload, timeout=self.config.timeout, headers=headers)

        status = resp.get("status", 0)
        body = resp.get("body")
        if status >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning(f"[job:create] store rejected job job_type={job_type} status={status} body={str(body)[:200]}")
            raise JobCreationError(message or f"Job store returned {status}", upstream_status=status)

        row = body[0] if isinstance(body, list) and body else body
        if not isinstance(row, dict):
            raise JobCreationError("Job store did not return the created job", upstream_status=status)
        job = self._parse(row, url)
        logger.debug(f"[job:create] stored job_id={job.id} job_type={job.job_type}")
        return job

    async def get(self, job_id: str) -> AIJob:
        url = self.job_url(job_id)
        headers = await self._headers(NO_STORE_HEADERS)
        rows = await self._http.get(url, timeout=self.config.timeout, headers=headers)
        if isinstance(rows, dict):
            rows = [rows]
        if not rows:
            raise JobNotFoundError(job_id)
        return self._parse(rows[0], url)

    async def list(
        self,
        owner_id: str,
        job_type: JobType,
        statuses: Optional[Iterable[JobStatus]] = None,
        updated_since: Optional[datetime] = None,
        limit: int = 10,
    ) -> Sequence[AIJob]:
        params: List[str] = [
            "select=*",
            f"owner_user_id=eq.{quote(owner_id, safe='')}",
            f"job_type=eq.{job_type}",
        ]
        if statuses:
            params.append(f"status=in.({','.join(sorted(str(s) for s in statuses))})")
        if updated_since is not None:
            params.append(f"updated_at=gte.{quote(updated_since.isoformat(), safe='')}")
            params.append("order=updated_at.desc")
        else:
            params.append("order=created_at.desc")
        params.append(f"limit={limit}")

        url = f"{self.config.table_url}?{'&'.join(params)}"
        headers = await self._headers(NO_STORE_HEADERS)
        rows = await self._http.get(url, timeout=self.config.timeout, headers=headers)
        return [self._parse(row, url) for row in rows or []]
