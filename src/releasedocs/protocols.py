"""Protocol interfaces for swappable components.

The transformer and the pipeline reference these protocols, not the
concrete implementations. Tests use lightweight in-memory implementations.
"""

from __future__ import annotations

from typing import Any, Protocol

from releasedocs.errors import ErrorCode


class ImageResolverProtocol(Protocol):
    """Maps a remote image locator to the reference written into the page."""

    async def resolve(self, locator: str) -> str: ...


class FetcherProtocol(Protocol):
    """Interface for the HTTP fetcher."""

    async def fetch_json(
        self,
        url: str,
        *,
        payload: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.DOCUMENT_FETCH_FAILED,
        timeout: float | None = None,
    ) -> Any: ...

    async def fetch_bytes(self, url: str, *, timeout: float | None = None) -> bytes: ...
