# aijobs/adapters/aiohttp_client_adapter.py
import asyncio
from typing import Any, Dict, Optional

import aiohttp

from aijobs.core.exceptions import UpstreamError
from aijobs.core.interfaces.http_client import HttpClientPort
from aijobs.core.models.upstream_error import UpstreamErrorResponse
from aijobs.core.settings import logger


def _upstream_error(title: str, status: int, detail: str, url: str) -> UpstreamError:
    return UpstreamError(UpstreamErrorResponse(title=title, status=status, detail=detail, url=url))


class AioHttpClientAdapter(HttpClientPort):
    def __init__(
        self,
        default_total: float = 10.0,
        default_sock_connect: float = 5.0,
    ):
        self._session: Optional[aiohttp.ClientSession] = None
        self._default_total = default_total
        self._default_sock_connect = default_sock_connect
        # Used when callers do not pass a timeout
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    def _client_timeout(self, timeout: float | None) -> aiohttp.ClientTimeout:
        if timeout is None:
            return self._default_client_timeout
        # Keep adapter-level sock_connect but apply the caller's total
        return aiohttp.ClientTimeout(
            total=timeout,
            sock_connect=min(self._default_sock_connect, timeout),
        )

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")
        return self._session

    async def get(
        self,
        url: str,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Any:
        """GET a JSON document, translating HTTP/network errors into UpstreamError."""
        session = self._require_session()
        try:
            async with session.get(url, timeout=self._client_timeout(timeout), headers=headers) as response:
                try:
                    response_data = await response.json()
                except aiohttp.ContentTypeError:
                    response_text = await response.text()
                    if response.status >= 400:
                        response.raise_for_status()
                    logger.error(
                        "Invalid JSON response from job service. URL: %s, Content: %s",
                        url,
                        response_text[:500],
                    )
                    raise _upstream_error(
                        "Invalid Response Content",
                        502,
                        f"The response from the job service was not valid JSON: '{response_text[:100]}'",
                        url,
                    )

                response.raise_for_status()
                return response_data

        except asyncio.TimeoutError:
            logger.error("Timeout when requesting job service. URL: %s", url)
            raise _upstream_error("Upstream Timeout", 504, "The request to the job service timed out.", url)

        except aiohttp.ClientResponseError as client_response_error:
            if client_response_error.status == 401:
                logger.warning(
                    "Authentication failed when requesting job service. URL: %s, Error: %s",
                    url,
                    str(client_response_error),
                )
                raise _upstream_error(
                    "Authentication Failed", 401, "Authentication with the job service failed.", url
                )

            logger.error(
                "HTTP error when requesting job service. URL: %s, Status: %s, Error: %s",
                url,
                client_response_error.status,
                str(client_response_error),
            )
            raise _upstream_error(
                "Upstream HTTP Error",
                client_response_error.status,
                f"The job service returned an HTTP error: {client_response_error.status}",
                url,
            )

        except aiohttp.ClientError as client_error:
            logger.error("Connection error when requesting job service. URL: %s, Error: %s", url, str(client_error))
            raise _upstream_error(
                "Upstream Connection Error", 502, "There was a connection error with the job service.", url
            )

    async def post(
        self,
        url: str,
        json: Any,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        session = self._require_session()
        try:
            async with session.post(url, json=json, timeout=self._client_timeout(timeout), headers=headers) as response:
                try:
                    body = await response.json()
                except aiohttp.ContentTypeError:
                    body = await response.text()

                # No raise_for_status: the caller inspects the status
                return {
                    "status": response.status,
                    "headers": dict(response.headers),
                    "body": body,
                }

        except asyncio.TimeoutError:
            logger.debug("Timeout when POSTing to job service. URL: %s", url)
            raise _upstream_error("Upstream Timeout", 504, "The request to the job service timed out.", url)

        except aiohttp.ClientError as client_err:
            logger.debug("Connection error when POSTing to job service. URL: %s, Error: %s", url, str(client_err))
            raise _upstream_error(
                "Upstream Connection Error", 502, "There was a connection error with the job service.", url
            )

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
