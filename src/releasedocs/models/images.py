from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

ImageFormat = Literal["jpeg", "png", "other"]


class ImageCacheEntry(BaseModel):
    """A locally stored image keyed by the hash of its URL path."""

    key: str  # sha256 prefix of the locator's path component
    path: str  # Local file path
    reference: str  # Public path written into the MDX
    format: ImageFormat | None = None  # None when restored from disk without sniffing
