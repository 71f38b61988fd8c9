"""Unit tests for releasedocs.navigation."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from releasedocs.errors import ErrorCode, ReleaseDocsError
from releasedocs.navigation import (
    apply_release_navigation,
    collect_pages,
    load_docs_config,
    release_pages,
    update_release_navigation,
)

if TYPE_CHECKING:
    from pathlib import Path

GROUP = "Product Updates"
TAB = "Releases"


def _tabbed_config() -> dict[str, Any]:
    return {
        "name": "Docs",
        "navigation": {
            "tabs": [
                {
                    "tab": "Guides",
                    "groups": [{"group": "Get Started", "pages": ["introduction", "quickstart"]}],
                },
                {
                    "tab": TAB,
                    "groups": [{"group": GROUP, "pages": ["releases/old"]}],
                },
            ]
        },
    }


# ---------------------------------------------------------------------------
# release_pages
# ---------------------------------------------------------------------------


class TestReleasePages:
    def test_index_then_archive_group(self) -> None:
        assert release_pages("releases", [2023, 2022]) == [
            "releases/index",
            {"group": "Archive", "pages": ["releases/2023", "releases/2022"]},
        ]

    def test_no_archive_group_without_years(self) -> None:
        assert release_pages("changelog", []) == ["changelog/index"]


# ---------------------------------------------------------------------------
# apply_release_navigation
# ---------------------------------------------------------------------------


class TestApplyReleaseNavigation:
    def test_existing_group_in_tabs_replaced(self) -> None:
        config = _tabbed_config()
        pages = release_pages("releases", [2023])
        assert apply_release_navigation(config, group=GROUP, tab=TAB, pages=pages) is True

        tabs = config["navigation"]["tabs"]
        assert len(tabs) == 2
        assert tabs[1]["groups"][0]["pages"] == pages
        # Unrelated groups untouched
        assert tabs[0]["groups"][0]["pages"] == ["introduction", "quickstart"]

    def test_nested_group_found(self) -> None:
        config = {
            "navigation": [
                {"group": "Outer", "pages": ["a", {"group": GROUP, "pages": []}]},
            ]
        }
        assert apply_release_navigation(config, group=GROUP, tab=TAB, pages=["x"]) is True
        assert config["navigation"][0]["pages"][1] == {"group": GROUP, "pages": ["x"]}

    def test_missing_group_adds_tab(self) -> None:
        config = {"navigation": {"tabs": [{"tab": "Guides", "groups": []}]}}
        assert apply_release_navigation(config, group=GROUP, tab=TAB, pages=["p"]) is False
        assert config["navigation"]["tabs"][-1] == {
            "tab": TAB,
            "groups": [{"group": GROUP, "pages": ["p"]}],
        }

    def test_missing_group_appended_to_list_layout(self) -> None:
        config = {"navigation": [{"group": "Get Started", "pages": ["introduction"]}]}
        assert apply_release_navigation(config, group=GROUP, tab=TAB, pages=["p"]) is False
        assert config["navigation"][-1] == {"group": GROUP, "pages": ["p"]}

    def test_missing_navigation_created(self) -> None:
        config: dict[str, Any] = {}
        apply_release_navigation(config, group=GROUP, tab=TAB, pages=["p"])
        assert config["navigation"] == [{"group": GROUP, "pages": ["p"]}]

    def test_unsupported_layout_raises(self) -> None:
        config = {"navigation": "nope"}
        with pytest.raises(ReleaseDocsError) as exc_info:
            apply_release_navigation(config, group=GROUP, tab=TAB, pages=[])
        assert exc_info.value.code == ErrorCode.NAVIGATION_CONFIG_INVALID


# ---------------------------------------------------------------------------
# File handling
# ---------------------------------------------------------------------------


class TestUpdateReleaseNavigation:
    def test_rewrites_file(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.json"
        path.write_text(json.dumps(_tabbed_config()), encoding="utf-8")

        written = update_release_navigation(
            path, group=GROUP, tab=TAB, prefix="releases", archive_years=[2023, 2022]
        )

        assert written is True
        config = json.loads(path.read_text(encoding="utf-8"))
        assert config["name"] == "Docs"
        assert config["navigation"]["tabs"][1]["groups"][0]["pages"] == [
            "releases/index",
            {"group": "Archive", "pages": ["releases/2023", "releases/2022"]},
        ]
        assert path.read_text(encoding="utf-8").startswith('{\n  "name"')

    def test_missing_file_is_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.json"
        written = update_release_navigation(
            path, group=GROUP, tab=TAB, prefix="releases", archive_years=[]
        )
        assert written is False
        assert not path.exists()

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ReleaseDocsError) as exc_info:
            load_docs_config(path)
        assert exc_info.value.code == ErrorCode.NAVIGATION_CONFIG_INVALID
        assert path.read_text(encoding="utf-8") == "{not json"

    def test_non_object_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ReleaseDocsError):
            load_docs_config(path)


# ---------------------------------------------------------------------------
# collect_pages
# ---------------------------------------------------------------------------


class TestCollectPages:
    def test_walks_tabs_groups_and_pages(self) -> None:
        config = _tabbed_config()
        assert collect_pages(config["navigation"]) == [
            "introduction",
            "quickstart",
            "releases/old",
        ]

    def test_page_objects_and_duplicates(self) -> None:
        nav = [
            {"group": "A", "pages": ["a", {"page": "b"}, {"group": "Sub", "pages": ["a", "c"]}]},
        ]
        assert collect_pages(nav) == ["a", "b", "c"]

    def test_none(self) -> None:
        assert collect_pages(None) == []
