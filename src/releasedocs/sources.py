"""Wiki share client: lists and downloads change-log documents.

Talks to an Outline-compatible API where a public share exposes a document
tree (``shares.info``) and each document's markdown (``documents.info``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from releasedocs.errors import ErrorCode, ReleaseDocsError
from releasedocs.models import RawDocument

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from releasedocs.protocols import FetcherProtocol

log = structlog.get_logger()


def _dig(payload: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(payload, dict):
            return None
        payload = payload.get(key)
    return payload


class ShareClient:
    """Reads the documents published under one share."""

    def __init__(self, fetcher: FetcherProtocol, api_base_url: str, share_id: str) -> None:
        self._fetcher = fetcher
        self._api_base_url = api_base_url.rstrip("/")
        self._share_id = share_id

    async def list_documents(self) -> list[dict[str, Any]]:
        """Top-level children of the shared tree (``id`` and ``title`` each)."""
        payload = await self._fetcher.fetch_json(
            f"{self._api_base_url}/shares.info",
            payload={"id": self._share_id},
            code=ErrorCode.SHARE_FETCH_FAILED,
        )
        children = _dig(payload, "data", "sharedTree", "children")
        if not isinstance(children, list):
            raise ReleaseDocsError(
                code=ErrorCode.INVALID_RESPONSE,
                message="shares.info response has no data.sharedTree.children list",
                recoverable=False,
            )
        return [child for child in children if isinstance(child, dict) and "id" in child]

    async def fetch_document(self, node: dict[str, Any]) -> RawDocument:
        payload = await self._fetcher.fetch_json(
            f"{self._api_base_url}/documents.info",
            payload={"id": node["id"], "shareId": self._share_id},
            code=ErrorCode.DOCUMENT_FETCH_FAILED,
        )
        text = _dig(payload, "data", "text")
        if not isinstance(text, str):
            raise ReleaseDocsError(
                code=ErrorCode.INVALID_RESPONSE,
                message=f"documents.info response for {node['id']} has no text",
                recoverable=False,
            )
        return RawDocument(id=str(node["id"]), title=str(node.get("title", "")), text=text)

    async def iter_documents(self) -> AsyncIterator[RawDocument]:
        """Yield each document in tree order, skipping ones that fail to download."""
        for node in await self.list_documents():
            try:
                yield await self.fetch_document(node)
            except ReleaseDocsError as exc:
                log.warning(
                    "document_fetch_failed",
                    document_id=node.get("id"),
                    title=node.get("title"),
                    code=exc.code,
                    message=exc.message,
                )
