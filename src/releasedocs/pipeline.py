"""Generation steps wired together.

Every step isolates its own failures: a step logs what went wrong and
returns, so later steps still run. Only an unexpected exception escapes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from releasedocs.aggregator import ReleaseNotesWriter
from releasedocs.apidocs import ApiDocsSync
from releasedocs.errors import ReleaseDocsError
from releasedocs.navigation import update_release_navigation
from releasedocs.parser import parse_release_document
from releasedocs.scaffold import scaffold_missing_pages
from releasedocs.sources import ShareClient
from releasedocs.transformer import ContentTransformer

if TYPE_CHECKING:
    from releasedocs.models import Update
    from releasedocs.state import RunContext

log = structlog.get_logger()


def _api_sync(ctx: RunContext) -> ApiDocsSync:
    settings = ctx.settings
    return ApiDocsSync(
        ctx.fetcher,
        ticket_url_template=settings.releases.ticket_url_template,
        reference_dir=settings.docs.reference_dir,
        root=ctx.root,
        images=ctx.images,
        timeout=settings.fetcher.timeout_seconds,
    )


async def sync_api_docs(ctx: RunContext) -> None:
    """Download every configured API description and build the endpoint index."""
    settings = ctx.settings
    if not settings.apis:
        log.info("api_sync_skipped", reason="no_apis_configured")
        return

    index = await _api_sync(ctx).sync_all(settings.apis)
    if ctx.endpoints is None:
        ctx.endpoints = index
    else:
        ctx.endpoints.merge(index)
    log.info("api_sync_complete", apis=len(settings.apis), endpoints=len(ctx.endpoints))


async def collect_updates(client: ShareClient) -> list[Update]:
    """Parse every shared document into updates, in tree order."""
    updates: list[Update] = []
    async for document in client.iter_documents():
        parsed = parse_release_document(document.title, document.text)
        log.debug("document_parsed", title=document.title, updates=len(parsed))
        updates.extend(parsed)
    return updates


async def generate_release_notes(ctx: RunContext) -> list[int] | None:
    """Write the release-note pages. Returns the archive years, or None on failure."""
    settings = ctx.settings
    if not settings.share.share_id:
        log.warning("release_notes_skipped", reason="no_share_id_configured")
        return None

    client = ShareClient(ctx.fetcher, settings.share.api_base_url, settings.share.share_id)
    try:
        updates = await collect_updates(client)
    except ReleaseDocsError as exc:
        log.error("share_fetch_failed", code=exc.code, message=exc.message)
        return None

    if not updates:
        log.warning("release_notes_skipped", reason="no_updates")
        return None

    transformer = ContentTransformer(
        ticket_url_template=settings.releases.ticket_url_template,
        images=ctx.images,
        endpoints=ctx.endpoints,
    )
    writer = ReleaseNotesWriter(
        ctx.path(settings.releases.output_dir), transformer, today=ctx.today
    )
    archive_years = await writer.write(updates)
    log.info("release_notes_written", updates=len(updates), archive_years=archive_years)
    return archive_years


def update_navigation(ctx: RunContext, archive_years: list[int]) -> bool:
    """Point the release group in docs.json at the generated pages."""
    releases = ctx.settings.releases
    try:
        return update_release_navigation(
            ctx.path(ctx.settings.docs.config_path),
            group=releases.nav_group,
            tab=releases.nav_tab,
            prefix=releases.page_prefix,
            archive_years=archive_years,
        )
    except ReleaseDocsError as exc:
        log.error("navigation_update_failed", code=exc.code, message=exc.message)
        return False
    except OSError:
        log.error("navigation_update_failed", exc_info=True)
        return False


def scaffold_pages(ctx: RunContext) -> int:
    try:
        created = scaffold_missing_pages(ctx.path(ctx.settings.docs.config_path), ctx.root)
    except ReleaseDocsError as exc:
        log.error("scaffold_failed", code=exc.code, message=exc.message)
        return 0
    return len(created)


async def run_releases(ctx: RunContext) -> None:
    if ctx.endpoints is None and ctx.settings.apis:
        # Standalone run: link against the API copies saved by an earlier sync
        ctx.endpoints = _api_sync(ctx).load_saved_index(ctx.settings.apis)
    archive_years = await generate_release_notes(ctx)
    if archive_years is not None:
        update_navigation(ctx, archive_years)


async def run_all(ctx: RunContext) -> None:
    """API sync first so release notes can link endpoint references."""
    await sync_api_docs(ctx)
    await run_releases(ctx)
    scaffold_pages(ctx)
