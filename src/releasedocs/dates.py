"""Free-text date normalisation.

``parse_date`` never raises: anything it cannot read becomes ``EARLIEST``,
which sorts last in a newest-first ordering.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from dateutil import parser as dateutil_parser

EARLIEST = datetime.min

# Fills the components a label leaves out ("March 2024" → 1 March 2024)
_DEFAULT = datetime(1970, 1, 1)

_ORDINAL_RE = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.IGNORECASE)


def strip_ordinals(text: str) -> str:
    """``"3rd March 2024"`` → ``"3 March 2024"``."""
    return _ORDINAL_RE.sub(r"\1", text)


def parse_date(text: str | None) -> datetime:
    """Parse a human date label into a naive UTC datetime."""
    if not text or not text.strip():
        return EARLIEST

    try:
        parsed = dateutil_parser.parse(strip_ordinals(text.strip()), default=_DEFAULT)
    except (ValueError, OverflowError):
        return EARLIEST

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def is_dated(moment: datetime) -> bool:
    return moment != EARLIEST
