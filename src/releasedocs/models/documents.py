from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class RawDocument(BaseModel):
    """One change-log page as returned by the wiki share API."""

    id: str
    title: str
    text: str  # Raw wiki markdown


class Update(BaseModel):
    """One dated change entry extracted from a source document."""

    label: str  # Human-readable date or sub-version label
    description: str  # "Release R12" | "Patch R12a" | ""
    content: str  # Body in the wiki dialect, not yet transformed
    occurred_at: datetime  # Ordering key; EARLIEST when the label is not a date
    source: str = ""  # Title of the owning document
