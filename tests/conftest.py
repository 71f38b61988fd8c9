"""Shared test fixtures for the releasedocs test suite."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from releasedocs.endpoints import EndpointIndex
from releasedocs.models import ApiOperation


class FakeImageResolver:
    """In-memory ImageResolverProtocol: maps every locator to a fixed prefix."""

    def __init__(self, prefix: str = "/images/test") -> None:
        self.prefix = prefix
        self.calls: list[str] = []

    async def resolve(self, locator: str) -> str:
        self.calls.append(locator)
        name = locator.rsplit("/", 1)[-1].split("?", 1)[0]
        return f"{self.prefix}/{name}"


@pytest.fixture()
def image_resolver() -> FakeImageResolver:
    return FakeImageResolver()


@pytest.fixture()
def sample_operations() -> list[ApiOperation]:
    """A small API: orders, customers and API keys."""
    return [
        ApiOperation(method="get", path="/orders/{id}", summary="Get an order", tags=["Orders"]),
        ApiOperation(method="post", path="/orders", summary="Create Order", tags=["Orders"]),
        ApiOperation(
            method="get",
            path="/customers/{customerId}",
            summary="Retrieve customer",
            tags=["CustomerAccounts"],
        ),
        ApiOperation(method="delete", path="/api-keys/{uuid}", summary=None, tags=["APIKeys"]),
        ApiOperation(method="get", path="/health", summary="Health check", tags=[]),
    ]


@pytest.fixture()
def endpoint_index(sample_operations: list[ApiOperation]) -> EndpointIndex:
    return EndpointIndex.from_operations(sample_operations, "api-reference")


def _encode(mode: str, fmt: str, size: tuple[int, int] = (32, 32)) -> bytes:
    color = 3 if mode == "P" else (200, 40, 90)
    image = Image.new(mode, size, color)
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return _encode("RGB", "PNG")


@pytest.fixture()
def palette_png_bytes() -> bytes:
    return _encode("P", "PNG")


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return _encode("RGB", "JPEG")


@pytest.fixture()
def gif_bytes() -> bytes:
    return _encode("P", "GIF")
