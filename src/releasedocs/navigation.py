"""docs.json navigation editing and page discovery.

The site's navigation is either a list of groups or a ``{"tabs": [...]}``
object whose tabs carry ``groups``. Groups nest through ``pages`` lists that
mix page paths (strings) and sub-groups (objects).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from releasedocs.errors import ErrorCode, ReleaseDocsError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

log = structlog.get_logger()

ARCHIVE_GROUP = "Archive"


def load_docs_config(path: Path) -> dict[str, Any] | None:
    """Read docs.json. ``None`` when the file is missing.

    Raises ReleaseDocsError when the file exists but cannot be read or
    parsed: there is nothing safe to write back in that case.
    """
    if not path.is_file():
        log.warning("docs_config_missing", path=str(path))
        return None
    try:
        config = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ReleaseDocsError(
            code=ErrorCode.NAVIGATION_CONFIG_INVALID,
            message=f"Cannot read {path}: {exc}",
            recoverable=False,
        ) from exc
    if not isinstance(config, dict):
        raise ReleaseDocsError(
            code=ErrorCode.NAVIGATION_CONFIG_INVALID,
            message=f"{path} does not contain a JSON object",
            recoverable=False,
        )
    return config


def release_pages(prefix: str, archive_years: Iterable[int | str]) -> list[str | dict[str, Any]]:
    """``[<prefix>/index, {"group": "Archive", "pages": [<prefix>/<year>, ...]}]``."""
    pages: list[str | dict[str, Any]] = [f"{prefix}/index"]
    archive = [f"{prefix}/{year}" for year in archive_years]
    if archive:
        pages.append({"group": ARCHIVE_GROUP, "pages": archive})
    return pages


def _replace_group_pages(items: Any, group: str, pages: list[str | dict[str, Any]]) -> bool:
    """Replace the pages of every group named ``group``; True if one was found."""
    if not isinstance(items, list):
        return False

    found = False
    for item in items:
        if not isinstance(item, dict):
            continue
        if "groups" in item:
            found = _replace_group_pages(item["groups"], group, pages) or found
        elif item.get("group") == group:
            item["pages"] = pages
            found = True
        elif isinstance(item.get("pages"), list):
            found = _replace_group_pages(item["pages"], group, pages) or found
    return found


def apply_release_navigation(
    config: dict[str, Any],
    *,
    group: str,
    tab: str,
    pages: list[str | dict[str, Any]],
) -> bool:
    """Point ``group`` at ``pages``, creating it when absent.

    Returns True when an existing group was updated, False when a new
    tab (tabbed layout) or top-level group (list layout) was inserted.
    """
    nav = config.setdefault("navigation", [])

    if isinstance(nav, dict) and "tabs" in nav:
        if _replace_group_pages(nav["tabs"], group, pages):
            return True
        nav["tabs"].append({"tab": tab, "groups": [{"group": group, "pages": pages}]})
        return False

    if isinstance(nav, list):
        if _replace_group_pages(nav, group, pages):
            return True
        nav.append({"group": group, "pages": pages})
        return False

    raise ReleaseDocsError(
        code=ErrorCode.NAVIGATION_CONFIG_INVALID,
        message="Unsupported navigation layout: expected a list or an object with 'tabs'",
        recoverable=False,
    )


def update_release_navigation(
    path: Path,
    *,
    group: str,
    tab: str,
    prefix: str,
    archive_years: Iterable[int | str],
) -> bool:
    """Rewrite docs.json so ``group`` lists the release pages. False if not written."""
    config = load_docs_config(path)
    if config is None:
        return False

    existed = apply_release_navigation(
        config, group=group, tab=tab, pages=release_pages(prefix, archive_years)
    )
    path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    log.info("navigation_updated", path=str(path), group=group, created=not existed)
    return True


def collect_pages(items: Any) -> list[str]:
    """Every page path referenced anywhere under ``items``, in first-seen order."""
    pages: dict[str, None] = {}

    def _walk(node: Any) -> None:
        if node is None:
            return
        entries = node if isinstance(node, list) else [node]
        for entry in entries:
            if isinstance(entry, str):
                pages[entry] = None
                continue
            if not isinstance(entry, dict):
                continue
            if isinstance(entry.get("page"), str):
                pages[entry["page"]] = None
            for key in ("pages", "groups", "tabs"):
                if key in entry:
                    _walk(entry[key])

    _walk(items)
    return list(pages)
