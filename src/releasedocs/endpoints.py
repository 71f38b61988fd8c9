"""Endpoint index: inline API references → documentation links.

Built once per API description. Lookup tries progressively looser keys
(exact, version-stripped, placeholder suffixes) and gives up quietly: an
unresolved reference stays plain text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from releasedocs.models import ApiOperation, EndpointEntry

if TYPE_CHECKING:
    from collections.abc import Iterable

log = structlog.get_logger()

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
PLACEHOLDER_SUFFIXES = ("/{id}", "/{uuid}", "/{orderId}", "/{customerId}")

# `GET /v1/orders/{id}` or GET /v1/orders/{id}; braces may carry MDX escapes
_REFERENCE_RE = re.compile(
    r"(?P<tick>`?)\b(?P<method>" + "|".join(HTTP_METHODS) + r")\s+"
    r"(?P<path>/(?:\\?[{}]|[^\s`()\[\]<>\\])*)(?P=tick)"
)
_VERSION_PREFIX_RE = re.compile(r"^/v\d+(?=/|$)")
_ACRONYM_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9]+")


def kebab_case(text: str) -> str:
    """``"APIKeys"`` → ``"api-keys"``, ``"Create an Order"`` → ``"create-an-order"``."""
    text = _ACRONYM_BOUNDARY_RE.sub(r"\1-\2", text)
    text = _CAMEL_BOUNDARY_RE.sub(r"\1-\2", text)
    return _NON_WORD_RE.sub("-", text).strip("-").lower()


def operation_slug(operation: ApiOperation) -> str:
    if operation.summary and kebab_case(operation.summary):
        return kebab_case(operation.summary)
    path = re.sub(r"[/{}]", "-", operation.path)
    slug = f"{operation.method.lower()}-{path}"
    return re.sub(r"-{2,}", "-", slug).strip("-")


def operation_link(operation: ApiOperation, base_dir: str) -> str:
    group = kebab_case(operation.tags[0]) if operation.tags else ""
    parts = [base_dir.strip("/"), group, operation_slug(operation)]
    return "/" + "/".join(part for part in parts if part)


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def operations_from_openapi(document: dict[str, Any]) -> list[ApiOperation]:
    """Flatten ``paths`` of an OpenAPI document into operations, in declaration order.

    Malformed entries are skipped, and a non-string summary or tag is ignored.
    """
    paths = document.get("paths")
    if not isinstance(paths, dict):
        return []
    operations: list[ApiOperation] = []
    for path, item in paths.items():
        if not isinstance(item, dict):
            continue
        for method, operation in item.items():
            if method.upper() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            tags = operation.get("tags")
            operations.append(
                ApiOperation(
                    method=method,
                    path=path,
                    summary=_text(operation.get("summary")),
                    tags=[tag for tag in tags if _text(tag)] if isinstance(tags, list) else [],
                )
            )
    return operations


@dataclass
class EndpointIndex:
    """``"METHOD /path"`` → EndpointEntry for one or more API descriptions."""

    entries: dict[str, EndpointEntry] = field(default_factory=dict)

    @classmethod
    def from_operations(cls, operations: Iterable[ApiOperation], base_dir: str) -> EndpointIndex:
        index = cls()
        for operation in operations:
            entry = EndpointEntry(
                method=operation.method,
                path=operation.path,
                link=operation_link(operation, base_dir),
            )
            # Later duplicates win
            index.entries[entry.key] = entry
        return index

    @classmethod
    def from_openapi(cls, document: dict[str, Any], base_dir: str) -> EndpointIndex:
        return cls.from_operations(operations_from_openapi(document), base_dir)

    def merge(self, other: EndpointIndex) -> None:
        self.entries.update(other.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def lookup(self, method: str, path: str) -> EndpointEntry | None:
        """Resolve a reference through the fallback tiers; ``None`` when all miss."""
        method = method.upper()
        entry = self.entries.get(f"{method} {path}")
        if entry is not None:
            return entry

        base = path.rstrip("/") or path
        stripped = _VERSION_PREFIX_RE.sub("", base)
        if stripped != base and stripped:
            base = stripped
            entry = self.entries.get(f"{method} {base}")
            if entry is not None:
                return entry

        for suffix in PLACEHOLDER_SUFFIXES:
            entry = self.entries.get(f"{method} {base}{suffix}")
            if entry is not None:
                return entry
        return None

    def linkify(self, text: str) -> str:
        """Wrap every resolvable endpoint reference in ``text`` in a markdown link."""
        if not self.entries:
            return text

        def _replace(match: re.Match[str]) -> str:
            reference = match.group(0)
            raw_path = match.group("path")
            trailing = ""
            if not match.group("tick"):
                # Sentence punctuation after a bare reference stays outside the link
                kept = raw_path.rstrip(".,;:!?")
                trailing = raw_path[len(kept) :]
                raw_path = kept
                reference = reference[: len(reference) - len(trailing)]

            path = raw_path.replace("\\", "").split("?", 1)[0]
            entry = self.lookup(match.group("method"), path)
            if entry is None:
                log.debug("endpoint_unresolved", method=match.group("method"), path=path)
                return match.group(0)
            return f"[{reference}]({entry.link}){trailing}"

        return _REFERENCE_RE.sub(_replace, text)
