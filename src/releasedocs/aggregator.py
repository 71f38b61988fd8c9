"""Ordering, year partitioning and MDX page emission for updates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

import structlog

from releasedocs.dates import is_dated

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from releasedocs.models import Update
    from releasedocs.transformer import ContentTransformer

log = structlog.get_logger()

INDEX_PAGE = "index"


@dataclass
class YearPartition:
    """Updates split into the index page and per-year archives."""

    cutoff_year: int
    current_year: int
    recent: list[Update] = field(default_factory=list)
    archives: dict[int, list[Update]] = field(default_factory=dict)

    @property
    def archive_years(self) -> list[int]:
        return sorted(self.archives, reverse=True)


def sort_updates(updates: Iterable[Update]) -> list[Update]:
    """Newest first; equal instants keep their original order."""
    return sorted(updates, key=lambda update: update.occurred_at, reverse=True)


def partition_by_year(updates: Iterable[Update], today: date | None = None) -> YearPartition:
    """Keep the current and previous year on the index page, archive the rest.

    Undated updates stay on the index page; a sorted input places them last.
    """
    current_year = (today or date.today()).year
    partition = YearPartition(cutoff_year=current_year - 1, current_year=current_year)

    for update in updates:
        if not is_dated(update.occurred_at):
            log.warning(
                "update_undated",
                label=update.label,
                description=update.description,
                source=update.source,
            )
            partition.recent.append(update)
            continue

        year = update.occurred_at.year
        if year >= partition.cutoff_year:
            partition.recent.append(update)
        else:
            partition.archives.setdefault(year, []).append(update)
    return partition


def _attr(value: str) -> str:
    return value.replace('"', "&quot;")


def front_matter(title: str, description: str) -> str:
    return f'---\ntitle: "{_attr(title)}"\ndescription: "{_attr(description)}"\n---\n\n'


def update_block(label: str, description: str, content: str) -> str:
    return (
        f'\n<Update label="{_attr(label)}" description="{_attr(description)}">\n\n'
        f"{content}\n\n"
        "</Update>\n"
    )


def render_page(title: str, description: str, blocks: Iterable[str], preamble: str = "") -> str:
    page = front_matter(title, description)
    if preamble:
        page += f"{preamble}\n\n"
    return page + "".join(blocks)


async def render_updates(updates: Iterable[Update], transformer: ContentTransformer) -> list[str]:
    """Transform each update body and wrap it in an ``<Update>`` block."""
    blocks: list[str] = []
    for update in updates:
        content = await transformer.transform(update.content)
        blocks.append(update_block(update.label, update.description, content))
    return blocks


class ReleaseNotesWriter:
    """Writes ``index.mdx`` plus one ``<year>.mdx`` archive page per old year."""

    def __init__(
        self,
        output_dir: Path,
        transformer: ContentTransformer,
        *,
        today: date | None = None,
    ) -> None:
        self._output_dir = output_dir
        self._transformer = transformer
        self._today = today

    async def write(self, updates: Iterable[Update]) -> list[int]:
        """Emit every page and return the archive years, newest first."""
        partition = partition_by_year(sort_updates(updates), self._today)
        self._output_dir.mkdir(parents=True, exist_ok=True)

        blocks = await render_updates(partition.recent, self._transformer)
        self._write_page(
            INDEX_PAGE,
            render_page(
                "Release Notes",
                f"Latest updates from {partition.cutoff_year} - {partition.current_year}",
                blocks,
            ),
        )

        for year in partition.archive_years:
            blocks = await render_updates(partition.archives[year], self._transformer)
            self._write_page(
                str(year),
                render_page(f"{year} Archive", f"Release history for {year}", blocks),
            )

        return partition.archive_years

    def _write_page(self, name: str, content: str) -> None:
        path = self._output_dir / f"{name}.mdx"
        path.write_text(content, encoding="utf-8")
        log.info("page_written", path=str(path))
