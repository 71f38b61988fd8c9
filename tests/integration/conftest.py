"""Integration test fixtures.

Provides a docs site root with a docs.json, Settings pointing at mocked
wiki and API hosts, and a fully wired RunContext. Image fixtures come from
tests/conftest.py.
"""

from __future__ import annotations

import json
from datetime import date
from typing import TYPE_CHECKING, Any

import httpx
import pytest
import respx

from releasedocs.config import ApiSource, Settings, ShareSettings
from releasedocs.fetcher import Fetcher
from releasedocs.images import ImageCache
from releasedocs.state import RunContext

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

WIKI_API = "https://wiki.example.com/api"
SHARE_ID = "share-abc"
OPENAPI_URL = "https://api.example.com:8443/v1/openapi.json"
TODAY = date(2025, 6, 1)

DOCS_JSON: dict[str, Any] = {
    "name": "Example Docs",
    "navigation": {
        "tabs": [
            {
                "tab": "Guides",
                "groups": [{"group": "Get Started", "pages": ["introduction"]}],
            },
            {
                "tab": "Releases",
                "groups": [{"group": "Product Updates", "pages": ["releases/old"]}],
            },
        ]
    },
}

OPENAPI: dict[str, Any] = {
    "openapi": "3.0.0",
    "info": {
        "title": "Orders API",
        "description": "Manage orders.\n\n## Changelog\n#### 1st May 2025\n- Added `POST /orders`\n",
    },
    "paths": {
        "/orders": {"post": {"summary": "Create Order", "tags": ["Orders"]}},
        "/orders/{id}": {"get": {"summary": "Get an order", "tags": ["Orders"]}},
    },
}

SHARED_TREE = {
    "data": {
        "sharedTree": {
            "children": [
                {"id": "doc-r12", "title": "R12: Spring Release - 3rd March 2025"},
                {"id": "doc-r3", "title": "R3: Launch - 14th February 2023"},
            ]
        }
    }
}

DOCUMENTS = {
    "doc-r12": (
        "## Highlights\n"
        "New order page. See GET /v1/orders/{id}. [ENG-42]\n\n"
        '![Orders](https://cdn.example.com/uploads/screen.png?sig=1 "Orders view")\n\n'
        "```json\n"
        '{"id": 1, "note": "<kept>"}\n'
        "```\n"
    ),
    "doc-r3": (
        "Initial launch.\n\n"
        "## Patch Notes\n"
        "### R3a - 1st March 2023\n"
        "- Fixed login\n"
    ),
}


def documents_info(request: httpx.Request) -> httpx.Response:
    """respx side effect serving DOCUMENTS by the requested id."""
    body = json.loads(request.content)
    return httpx.Response(200, json={"data": {"text": DOCUMENTS[body["id"]]}})


@pytest.fixture()
def site_root(tmp_path: Path) -> Path:
    (tmp_path / "docs.json").write_text(json.dumps(DOCS_JSON, indent=2), encoding="utf-8")
    return tmp_path


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        share=ShareSettings(api_base_url=WIKI_API, share_id=SHARE_ID),
        apis=[ApiSource(name="orders", source=OPENAPI_URL, output="api-reference/openapi.json")],
    )


@pytest.fixture()
def mock_network(png_bytes: bytes) -> Iterator[respx.MockRouter]:
    """Wiki, API and CDN routes. Tests swap single routes by name to inject failures."""
    with respx.mock(assert_all_called=False) as router:
        router.get(OPENAPI_URL, name="openapi").mock(
            return_value=httpx.Response(200, json=OPENAPI)
        )
        router.post(f"{WIKI_API}/shares.info", name="shares").mock(
            return_value=httpx.Response(200, json=SHARED_TREE)
        )
        router.post(f"{WIKI_API}/documents.info", name="documents").mock(
            side_effect=documents_info
        )
        router.get(host="cdn.example.com", path="/uploads/screen.png", name="image").mock(
            return_value=httpx.Response(200, content=png_bytes)
        )
        yield router


@pytest.fixture()
async def run_context(
    settings: Settings, site_root: Path, mock_network: respx.MockRouter
) -> AsyncIterator[RunContext]:
    """RunContext wired to a real Fetcher; tests mock the network with respx."""
    async with httpx.AsyncClient() as client:
        fetcher = Fetcher(client)
        images = ImageCache(
            fetcher,
            site_root / settings.images.cache_dir,
            settings.images.public_prefix,
        )
        yield RunContext(
            settings=settings,
            fetcher=fetcher,
            images=images,
            http_client=client,
            root=site_root,
            today=TODAY,
        )
