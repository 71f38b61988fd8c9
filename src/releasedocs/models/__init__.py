from __future__ import annotations

from releasedocs.models.api import ApiDescriptionParts, ApiOperation, EndpointEntry
from releasedocs.models.documents import RawDocument, Update
from releasedocs.models.images import ImageCacheEntry, ImageFormat

__all__ = [
    # documents
    "RawDocument",
    "Update",
    # images
    "ImageCacheEntry",
    "ImageFormat",
    # api
    "ApiOperation",
    "ApiDescriptionParts",
    "EndpointEntry",
]
