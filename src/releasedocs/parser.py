"""Change-log document parsing.

Turns one wiki page into an ordered list of ``Update`` records, and splits
an OpenAPI description into its introduction and changelog. Pure string
processing: no I/O and no exceptions for malformed input; unreadable
metadata degrades to ``UNKNOWN``.
"""

from __future__ import annotations

import re

from releasedocs.dates import parse_date
from releasedocs.models import ApiDescriptionParts, Update

UNKNOWN = "Unknown"

# "R12: Spring Release - 3rd March 2024" → ("R12", "3rd March 2024")
_TITLE_RE = re.compile(r"^\s*([A-Za-z]+\d\w*)\s*:.*?\s-\s*(.+?)\s*$")
_PATCH_NOTES_RE = re.compile(r"^##[^\n]*patch notes[^\n]*$", re.IGNORECASE | re.MULTILINE)
_PATCH_SPLIT_RE = re.compile(r"(?=^###\s)", re.MULTILINE)
# "R12a - 10th March 2024" → ("R12a", "10th March 2024")
_PATCH_HEADER_RE = re.compile(r"^([A-Za-z]+\d\w*)\s*-\s*(.+?)\s*$")

_CHANGELOG_RE = re.compile(r"^##\s?Changelog[^\n]*$", re.IGNORECASE | re.MULTILINE)
_CHANGELOG_SECTION = "#### "


def parse_title(title: str) -> tuple[str, str]:
    """Return ``(release_id, date_label)``, both ``UNKNOWN`` on mismatch."""
    match = _TITLE_RE.match(title)
    if match is None:
        return UNKNOWN, UNKNOWN
    return match.group(1), match.group(2)


def parse_release_document(title: str, text: str) -> list[Update]:
    """Split a release page into its main update and its patch updates."""
    release_id, date_label = parse_title(title)

    parts = _PATCH_NOTES_RE.split(text, maxsplit=1)
    main_content = parts[0].strip()
    patch_content = parts[1].strip() if len(parts) > 1 else ""

    updates: list[Update] = []

    if main_content:
        updates.append(
            Update(
                label=date_label,
                description=f"Release {release_id}",
                content=main_content,
                occurred_at=parse_date(date_label),
                source=title,
            )
        )

    if patch_content:
        updates.extend(_parse_patches(patch_content, source=title))

    return updates


def _parse_patches(patch_content: str, *, source: str) -> list[Update]:
    updates: list[Update] = []
    for section in _PATCH_SPLIT_RE.split(patch_content):
        section = section.strip()
        if not section.startswith("###"):
            continue

        header, newline, body = section.partition("\n")
        if not newline:
            continue

        match = _PATCH_HEADER_RE.match(header.lstrip("#").strip())
        if match is None:
            continue

        patch_id, label = match.groups()
        updates.append(
            Update(
                label=label,
                description=f"Patch {patch_id}",
                content=body.strip(),
                occurred_at=parse_date(label),
                source=source,
            )
        )
    return updates


def split_api_description(description: str) -> ApiDescriptionParts:
    """Split an OpenAPI ``info.description`` at its ``## Changelog`` heading.

    Each ``#### <label>`` section of the changelog becomes one Update with an
    empty description; text before the first section is the preamble.
    """
    parts = _CHANGELOG_RE.split(description, maxsplit=1)
    intro = parts[0].strip()
    # A heading with nothing under it counts as no changelog
    if len(parts) == 1 or not parts[1].strip():
        return ApiDescriptionParts(intro=intro)

    sections = parts[1].strip().split(_CHANGELOG_SECTION)
    changelog: list[Update] = []
    for section in sections[1:]:
        label, _, content = section.partition("\n")
        label = label.strip()
        changelog.append(
            Update(
                label=label,
                description="",
                content=content.strip(),
                occurred_at=parse_date(label),
            )
        )

    return ApiDescriptionParts(
        intro=intro,
        changelog_preamble=sections[0].strip(),
        changelog=changelog,
        has_changelog=True,
    )
