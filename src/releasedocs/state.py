"""Run state container.

RunContext is created once by the CLI and handed to every pipeline step.
Everything configurable reaches the components through it; no component
reads process-wide configuration on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

    import httpx

    from releasedocs.config import Settings
    from releasedocs.endpoints import EndpointIndex
    from releasedocs.protocols import FetcherProtocol, ImageResolverProtocol


@dataclass
class RunContext:
    """Holds all shared runtime state for one generation run."""

    settings: Settings
    fetcher: FetcherProtocol
    images: ImageResolverProtocol | None = None
    http_client: httpx.AsyncClient | None = None
    endpoints: EndpointIndex | None = None
    root: Path = field(default_factory=Path)
    today: date | None = None

    def path(self, relative: str) -> Path:
        """Resolve a configured path against the docs root."""
        return self.root / relative
