"""Wiki markdown → MDX rewriting.

A body is split into fenced code and prose. Code passes through untouched;
prose runs through a fixed ordered sequence of pure ``str -> str`` stages
(``pre_image_stages`` then ``post_image_stages``), then through endpoint
linkification.

Image conversion is the only stage that needs I/O. Locators are collected
from the prose after the stages that precede it, resolved concurrently
through the image cache, and the resulting mapping is bound into the stage
so the rewrite itself stays pure.
"""

from __future__ import annotations

import asyncio
import re
from functools import partial
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from releasedocs.endpoints import EndpointIndex
    from releasedocs.protocols import ImageResolverProtocol

    Stage = Callable[[str], str]

log = structlog.get_logger()

SAFE_TAGS = ("Note", "Tip", "Warning", "Info", "Success", "Danger", "Frame", "img", "br")

_FENCE_RE = re.compile(r"(```[\s\S]*?```)")

_H1_RE = re.compile(r"^#[ \t]+(.*)$", re.MULTILINE)
_H2_RE = re.compile(r"^##[ \t]+(.*)$", re.MULTILINE)
_H3_RE = re.compile(r"^###[ \t]+(.*)$", re.MULTILINE)

_BRACE_RE = re.compile(r"(?<!\\)([{}])")
_ANGLE_RE = re.compile(r"<(?!https?:|/?(?:" + "|".join(SAFE_TAGS) + r")(?=[\s/>]))")

_ADMONITION_RE = re.compile(r":::(\w+)\s+([\s\S]*?):::")
_ADMONITION_KINDS = {
    "tip": "Tip",
    "success": "Tip",
    "warning": "Warning",
    "danger": "Warning",
}

_TICKETS_RE = re.compile(r"\\?\[([A-Z]{2,}-\d+(?:\s*&\s*[A-Z]{2,}-\d+)*)\\?\]")

_IMAGE_RE = re.compile(r'!\[(.*?)\]\(([^)\s"]+)(?:\s+"(.*?)")?\)')
_ADJACENT_FRAMES_RE = re.compile(r"</Frame>\s*<Frame")
_ESCAPED_NEWLINE = "\\n"
_LONE_BACKSLASH_RE = re.compile(r"^[ \t]*\\[ \t]*(?:\n|$)", re.MULTILINE)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


def split_fences(body: str) -> list[tuple[bool, str]]:
    """Split ``body`` into ``(is_code, text)`` segments, in order.

    Only balanced triple-backtick fences count as code; a dangling opener is
    treated as prose.
    """
    return [(part.startswith("```"), part) for part in _FENCE_RE.split(body) if part]


# ---------------------------------------------------------------------------
# Prose stages
# ---------------------------------------------------------------------------


def remap_headings(text: str) -> str:
    text = _H1_RE.sub(r"\n#### \1", text)
    text = _H2_RE.sub(r"\n#### \1", text)
    return _H3_RE.sub(r"\n**\1**", text)


def escape_structural_chars(text: str) -> str:
    text = _BRACE_RE.sub(r"\\\1", text)
    return _ANGLE_RE.sub(r"\\<", text)


def _admonition(match: re.Match[str]) -> str:
    component = _ADMONITION_KINDS.get(match.group(1).lower(), "Note")
    return f"\n<{component}>\n{match.group(2).strip()}\n</{component}>\n"


def convert_admonitions(text: str) -> str:
    return _ADMONITION_RE.sub(_admonition, text)


def link_tickets(text: str, *, url_template: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        tickets = [ticket.strip() for ticket in match.group(1).split("&")]
        links = [f"[{ticket}]({url_template.format(ticket=ticket)})" for ticket in tickets]
        return f"[{' & '.join(links)}]"

    return _TICKETS_RE.sub(_replace, text)


def image_locators(text: str) -> list[str]:
    """Image URLs referenced in ``text``, first occurrence order, no duplicates."""
    return list(dict.fromkeys(match.group(2) for match in _IMAGE_RE.finditer(text)))


def _quote_attr(value: str) -> str:
    return value.replace('"', "&quot;")


def image_caption(alt: str, title: str | None) -> str:
    """Title wins unless it is a ``=WxH`` size hint; then alt; else empty."""
    caption = title or ""
    if caption.strip().startswith("="):
        caption = ""
    return caption or alt


def convert_images(text: str, *, resolved: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        alt, url, title = match.group(1), match.group(2), match.group(3)
        src = resolved.get(url, url)
        caption = image_caption(alt, title)
        img = f'<img src="{src}" alt="{_quote_attr(alt)}" />'
        if caption:
            return f'\n\n<Frame caption="{_quote_attr(caption)}">{img}</Frame>\n\n'
        return f"\n\n<Frame>{img}</Frame>\n\n"

    return _IMAGE_RE.sub(_replace, text)


def separate_adjacent_frames(text: str) -> str:
    return _ADJACENT_FRAMES_RE.sub("</Frame>\n\n<br />\n\n<Frame", text)


def clean_artifacts(text: str) -> str:
    text = text.replace(_ESCAPED_NEWLINE, "\n")
    return _LONE_BACKSLASH_RE.sub("", text)


def pre_image_stages(ticket_url_template: str) -> tuple[Stage, ...]:
    return (
        remap_headings,
        escape_structural_chars,
        convert_admonitions,
        partial(link_tickets, url_template=ticket_url_template),
    )


def post_image_stages(resolved: Mapping[str, str]) -> tuple[Stage, ...]:
    return (
        partial(convert_images, resolved=resolved),
        separate_adjacent_frames,
        clean_artifacts,
    )


def _apply(stages: tuple[Stage, ...], text: str) -> str:
    for stage in stages:
        text = stage(text)
    return text


def render_prose(
    text: str,
    *,
    ticket_url_template: str,
    resolved_images: Mapping[str, str] | None = None,
    endpoints: EndpointIndex | None = None,
) -> str:
    """Run every prose stage over one prose segment, synchronously."""
    text = _apply(pre_image_stages(ticket_url_template), text)
    text = _apply(post_image_stages(resolved_images or {}), text)
    if endpoints is not None:
        text = endpoints.linkify(text)
    return text


# ---------------------------------------------------------------------------
# Transformer
# ---------------------------------------------------------------------------


class ContentTransformer:
    """Rewrites update bodies to MDX, caching images and linking endpoints."""

    def __init__(
        self,
        *,
        ticket_url_template: str,
        images: ImageResolverProtocol | None = None,
        endpoints: EndpointIndex | None = None,
    ) -> None:
        self._ticket_url_template = ticket_url_template
        self._images = images
        self._endpoints = endpoints

    async def _resolve_images(self, locators: list[str]) -> dict[str, str]:
        if self._images is None or not locators:
            return {}
        references = await asyncio.gather(*(self._images.resolve(url) for url in locators))
        return dict(zip(locators, references, strict=True))

    async def transform(self, body: str) -> str:
        segments = split_fences(body)
        early = pre_image_stages(self._ticket_url_template)

        staged = [(is_code, text if is_code else _apply(early, text)) for is_code, text in segments]
        prose = "".join(text for is_code, text in staged if not is_code)
        late = post_image_stages(await self._resolve_images(image_locators(prose)))

        out: list[str] = []
        for is_code, text in staged:
            if is_code:
                out.append(text)
                continue
            text = _apply(late, text)
            if self._endpoints is not None:
                text = self._endpoints.linkify(text)
            out.append(text)
        return "".join(out)
