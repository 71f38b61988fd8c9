"""HTTP fetcher for wiki documents, API descriptions and images.

All network I/O goes through a single Fetcher instance shared across the
run. The Fetcher receives an httpx.AsyncClient via constructor injection;
the CLI owns the client lifecycle. Every call is a single attempt with a
bounded timeout; failures surface as ReleaseDocsError so callers never see
raw httpx exceptions.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from releasedocs.errors import ErrorCode, ReleaseDocsError

if TYPE_CHECKING:
    from releasedocs.config import FetcherSettings

log = structlog.get_logger()


def build_http_client(settings: FetcherSettings, user_agent: str) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once per run."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": user_agent},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


class Fetcher:
    """Single-attempt HTTP access with uniform error mapping."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch_json(
        self,
        url: str,
        *,
        payload: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.DOCUMENT_FETCH_FAILED,
        timeout: float | None = None,
    ) -> Any:
        """GET (or POST when ``payload`` is given) a URL and decode its JSON body.

        Some servers return JSON with a text content type, so the body is
        decoded from text rather than trusting the header.
        """
        response = await self._send(url, payload=payload, code=code, timeout=timeout)
        try:
            return json.loads(response.text)
        except ValueError as exc:
            raise ReleaseDocsError(
                code=ErrorCode.INVALID_RESPONSE,
                message=f"Invalid JSON from {url}: {exc}",
                recoverable=False,
            ) from exc

    async def fetch_bytes(self, url: str, *, timeout: float | None = None) -> bytes:
        """GET a URL and return the raw body."""
        response = await self._send(
            url, payload=None, code=ErrorCode.IMAGE_FETCH_FAILED, timeout=timeout
        )
        return response.content

    async def _send(
        self,
        url: str,
        *,
        payload: dict[str, Any] | None,
        code: ErrorCode,
        timeout: float | None,
    ) -> httpx.Response:
        request_timeout = httpx.Timeout(timeout) if timeout is not None else httpx.USE_CLIENT_DEFAULT
        try:
            if payload is None:
                response = await self._client.get(url, timeout=request_timeout)
            else:
                response = await self._client.post(url, json=payload, timeout=request_timeout)
        except httpx.InvalidURL as exc:
            raise ReleaseDocsError(
                code=code,
                message=f"Invalid URL {url}: {exc}",
                recoverable=False,
            ) from exc
        except httpx.HTTPError as exc:
            raise ReleaseDocsError(
                code=code,
                message=f"Network error fetching {url}: {exc}",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise ReleaseDocsError(
                code=code,
                message=f"HTTP {response.status_code} fetching {url}",
                recoverable=response.status_code >= 500,
            )

        log.debug(
            "fetch_complete",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response
