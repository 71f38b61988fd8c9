"""releasedocs: versioned MDX release notes and API reference pages."""

from __future__ import annotations

import importlib.metadata
import warnings

DIST_NAME = "releasedocs"
FALLBACK_VERSION = "0.0.0+unknown"


def _resolve_version() -> str:
    """Installed distribution version, or FALLBACK_VERSION from a bare source tree."""
    try:
        return importlib.metadata.version(DIST_NAME)
    except importlib.metadata.PackageNotFoundError:
        warnings.warn(
            f"{DIST_NAME} is not installed; reporting version {FALLBACK_VERSION}.",
            RuntimeWarning,
            stacklevel=2,
        )
        return FALLBACK_VERSION


__version__ = _resolve_version()
