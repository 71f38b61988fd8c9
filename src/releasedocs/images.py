"""Content-addressed local cache for images embedded in change logs.

Entries are keyed by the hash of the URL *path* only: signed wiki URLs
rotate their query string on every fetch but point at the same asset.
Files persist across runs and are never evicted; an existing file is a
cache hit and skips both the download and the recompression.

Failures never cross the ImageCache boundary: a failed download or an
undecodable image is logged and the original remote locator is returned,
so a broken image degrades the page instead of blocking it.
"""

from __future__ import annotations

import asyncio
import hashlib
import io
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog
from PIL import Image

from releasedocs.errors import ReleaseDocsError
from releasedocs.models import ImageCacheEntry, ImageFormat

if TYPE_CHECKING:
    from releasedocs.protocols import FetcherProtocol

log = structlog.get_logger()

KEY_LENGTH = 16
DEFAULT_EXTENSION = ".png"
PLAUSIBLE_EXTENSIONS = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".avif", ".bmp", ".tif", ".tiff"}
)

_JPEG_MAGIC = b"\xff\xd8\xff"
_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def cache_key(locator: str) -> str:
    """Hash of the locator's path component; query and fragment are ignored."""
    path = urlparse(locator).path
    return hashlib.sha256(path.encode("utf-8")).hexdigest()[:KEY_LENGTH]


def extension_for(locator: str) -> str:
    """File extension from the locator path, ``.png`` when absent or implausible."""
    ext = os.path.splitext(urlparse(locator).path)[1].lower()
    return ext if ext in PLAUSIBLE_EXTENSIONS else DEFAULT_EXTENSION


def detect_format(data: bytes) -> ImageFormat:
    if data.startswith(_JPEG_MAGIC):
        return "jpeg"
    if data.startswith(_PNG_MAGIC):
        return "png"
    return "other"


def compress_image(data: bytes, image_format: ImageFormat, *, jpeg_quality: int = 90) -> bytes:
    """Re-encode JPEG and PNG payloads; anything else is returned untouched.

    Raises ``OSError`` (or ``ValueError``) when Pillow cannot decode the
    payload despite its magic bytes.
    """
    if image_format == "other":
        return data

    with Image.open(io.BytesIO(data)) as image:
        image.load()
        out = io.BytesIO()
        if image_format == "jpeg":
            if image.mode not in ("RGB", "L", "CMYK"):
                image = image.convert("RGB")
            image.save(out, format="JPEG", quality=jpeg_quality, optimize=True, progressive=True)
        else:
            # Keep true colour: palette and bilevel images are expanded, never reduced
            if image.mode in ("P", "1"):
                image = image.convert("RGBA")
            image.save(out, format="PNG", optimize=True, compress_level=9)
    return out.getvalue()


def _write_atomic(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ImageCache:
    """Filesystem-backed image cache implementing ImageResolverProtocol."""

    def __init__(
        self,
        fetcher: FetcherProtocol,
        cache_dir: Path,
        public_prefix: str,
        *,
        jpeg_quality: int = 90,
        timeout: float | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._cache_dir = cache_dir
        self._public_prefix = public_prefix.rstrip("/")
        self._jpeg_quality = jpeg_quality
        self._timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self.entries: dict[str, ImageCacheEntry] = {}

    def _entry_for(self, locator: str) -> ImageCacheEntry:
        key = cache_key(locator)
        filename = f"{key}{extension_for(locator)}"
        return ImageCacheEntry(
            key=key,
            path=str(self._cache_dir / filename),
            reference=f"{self._public_prefix}/{filename}",
        )

    async def resolve(self, locator: str) -> str:
        """Return the local reference for ``locator``, downloading on first use."""
        entry = self._entry_for(locator)

        if Path(entry.path).exists():
            self.entries.setdefault(entry.key, entry)
            return entry.reference

        lock = self._locks.setdefault(entry.key, asyncio.Lock())
        async with lock:
            # Another task may have written the key while we waited
            if Path(entry.path).exists():
                self.entries.setdefault(entry.key, entry)
                return entry.reference
            return await self._download(locator, entry)

    async def _download(self, locator: str, entry: ImageCacheEntry) -> str:
        try:
            data = await self._fetcher.fetch_bytes(locator, timeout=self._timeout)
        except ReleaseDocsError as exc:
            log.warning("image_fetch_failed", url=locator, code=exc.code, message=exc.message)
            return locator

        image_format = detect_format(data)
        try:
            stored = compress_image(data, image_format, jpeg_quality=self._jpeg_quality)
        except (OSError, ValueError, Image.DecompressionBombError):
            log.warning("image_compress_failed", url=locator, format=image_format, exc_info=True)
            return locator

        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            _write_atomic(Path(entry.path), stored)
        except OSError:
            log.warning("image_write_failed", url=locator, path=entry.path, exc_info=True)
            return locator

        entry = entry.model_copy(update={"format": image_format})
        self.entries[entry.key] = entry
        log.info(
            "image_cached",
            key=entry.key,
            format=image_format,
            original_bytes=len(data),
            stored_bytes=len(stored),
        )
        return entry.reference
