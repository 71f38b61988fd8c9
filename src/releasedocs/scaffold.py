"""Placeholder pages for navigation entries that have no file yet."""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from releasedocs.navigation import collect_pages, load_docs_config

log = structlog.get_logger()

PAGE_SUFFIX = ".mdx"

_PLACEHOLDER = """---
title: "{title}"
description: "Documentation for {title}"
---

<Warning>
**Work in Progress**

This page is currently a placeholder. The content for **{title}** has not been written yet.
</Warning>

## Overview

Coming soon.
"""


def page_title(page_path: str) -> str:
    """``"api-reference/get-user"`` → ``"Get User"``."""
    stem = Path(page_path).name.removesuffix(PAGE_SUFFIX)
    return " ".join(word[:1].upper() + word[1:] for word in re.split(r"[-_]", stem))


def placeholder_page(title: str) -> str:
    return _PLACEHOLDER.format(title=title)


def scaffold_missing_pages(config_path: Path, root: Path) -> list[Path]:
    """Create a placeholder for every navigation page missing under ``root``.

    Returns the created files. Existing files are never touched.
    """
    config = load_docs_config(config_path)
    if config is None:
        return []

    pages = collect_pages(config.get("navigation"))
    log.info("scaffold_pages_found", count=len(pages))

    created: list[Path] = []
    for page in pages:
        if page.startswith("http"):
            continue
        relative = page if page.endswith(PAGE_SUFFIX) else f"{page}{PAGE_SUFFIX}"
        target = root / relative
        if target.exists():
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(placeholder_page(page_title(relative)), encoding="utf-8")
        log.info("scaffold_page_created", path=relative)
        created.append(target)

    if not created:
        log.info("scaffold_nothing_to_do")
    return created
