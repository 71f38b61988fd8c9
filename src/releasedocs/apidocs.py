"""API reference sync: OpenAPI download, local copy, intro and changelog pages.

Each configured API is independent: a failed download is logged and the
remaining APIs are still processed.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from releasedocs.aggregator import render_page, render_updates
from releasedocs.endpoints import EndpointIndex
from releasedocs.errors import ErrorCode, ReleaseDocsError
from releasedocs.parser import split_api_description
from releasedocs.transformer import ContentTransformer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from releasedocs.config import ApiSource
    from releasedocs.protocols import FetcherProtocol, ImageResolverProtocol

log = structlog.get_logger()

INTRO_FILENAME = "introduction.mdx"
CHANGELOG_FILENAME = "changelog.mdx"
DEFAULT_INTRO = "Welcome to the API documentation."

_PORT_RE = re.compile(r":\d+")


def derive_server_url(source: str) -> str:
    """``https://api.example.com:8443/v1/api-docs.json`` → ``https://api.example.com/v1``."""
    base = source[: source.rfind("/")]
    return _PORT_RE.sub("", base, count=1)


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class ApiDocsSync:
    """Builds the local reference material for each configured API."""

    def __init__(
        self,
        fetcher: FetcherProtocol,
        *,
        ticket_url_template: str,
        reference_dir: str,
        root: Path | None = None,
        images: ImageResolverProtocol | None = None,
        timeout: float | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._root = root or Path()
        self._ticket_url_template = ticket_url_template
        self._reference_dir = reference_dir
        self._images = images
        self._timeout = timeout

    async def load(self, api: ApiSource) -> dict[str, Any]:
        """Fetch (or read) the OpenAPI document, pinning ``servers`` for remote sources."""
        if is_remote(api.source):
            document = await self._fetcher.fetch_json(
                api.source, code=ErrorCode.SPEC_FETCH_FAILED, timeout=self._timeout
            )
            if not isinstance(document, dict):
                raise ReleaseDocsError(
                    code=ErrorCode.INVALID_RESPONSE,
                    message=f"{api.source} did not return a JSON object",
                    recoverable=False,
                )
            server_url = derive_server_url(api.source)
            log.info("api_server_url_fixed", api=api.name, server_url=server_url)
            document["servers"] = [{"url": server_url}]
            return document

        try:
            document = json.loads(Path(api.source).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ReleaseDocsError(
                code=ErrorCode.SPEC_FETCH_FAILED,
                message=f"Cannot read {api.source}: {exc}",
                recoverable=False,
            ) from exc
        if not isinstance(document, dict):
            raise ReleaseDocsError(
                code=ErrorCode.INVALID_RESPONSE,
                message=f"{api.source} does not contain a JSON object",
                recoverable=False,
            )
        return document

    def _base_dir(self, output: str) -> str:
        base = Path(output).parent.as_posix().strip("./")
        return base or self._reference_dir

    async def sync(self, api: ApiSource) -> EndpointIndex:
        """Write the OpenAPI copy and its MDX pages; return the API's endpoint index."""
        bound = log.bind(api=api.name)
        document = await self.load(api)

        output = self._root / api.output
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(document, indent=2), encoding="utf-8")
        bound.info("api_spec_saved", path=str(output))

        index = EndpointIndex.from_openapi(document, self._base_dir(api.output))
        bound.info("endpoint_index_built", endpoints=len(index))

        transformer = ContentTransformer(
            ticket_url_template=self._ticket_url_template,
            images=self._images,
            endpoints=index,
        )
        info = document.get("info")
        if not isinstance(info, dict):
            info = {}
        title = _text(info.get("title")) or "API Reference"
        parts = split_api_description(_text(info.get("description")) or "")

        intro = await transformer.transform(parts.intro) if parts.intro else DEFAULT_INTRO
        (output.parent / INTRO_FILENAME).write_text(
            render_page(title, f"Overview of {title}", [], preamble=intro), encoding="utf-8"
        )

        if parts.has_changelog:
            preamble = await transformer.transform(parts.changelog_preamble)
            blocks = await render_updates(parts.changelog, transformer)
            (output.parent / CHANGELOG_FILENAME).write_text(
                render_page(
                    "Changelog",
                    "Latest updates and changes to the API",
                    blocks,
                    preamble=preamble,
                ),
                encoding="utf-8",
            )
            bound.info("api_pages_written", pages=[INTRO_FILENAME, CHANGELOG_FILENAME])
        else:
            bound.info("api_pages_written", pages=[INTRO_FILENAME])

        return index

    async def sync_all(self, apis: Iterable[ApiSource]) -> EndpointIndex:
        """Sync every API, merging their indexes; failed APIs contribute nothing."""
        merged = EndpointIndex()
        for api in apis:
            try:
                merged.merge(await self.sync(api))
            except ReleaseDocsError as exc:
                log.error(
                    "api_sync_failed",
                    api=api.name,
                    source=api.source,
                    code=exc.code,
                    message=exc.message,
                )
            except (OSError, ValueError):
                log.error("api_sync_failed", api=api.name, source=api.source, exc_info=True)
        return merged

    def load_saved_index(self, apis: Iterable[ApiSource]) -> EndpointIndex:
        """Endpoint index from the OpenAPI copies a previous sync left on disk."""
        merged = EndpointIndex()
        for api in apis:
            path = self._root / api.output
            if not path.is_file():
                continue
            try:
                document = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(document, dict):
                    merged.merge(EndpointIndex.from_openapi(document, self._base_dir(api.output)))
            except (OSError, ValueError):
                log.warning("api_saved_spec_unreadable", api=api.name, path=str(path))
        return merged
