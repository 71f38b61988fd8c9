"""Command-line entrypoint.

Responsibilities (and nothing more):
- Parse arguments and load Settings
- Configure structlog
- Create the shared HTTP client, fetcher and image cache
- Run the requested pipeline step
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from releasedocs import __version__
from releasedocs.config import Settings, load_settings
from releasedocs.fetcher import Fetcher, build_http_client
from releasedocs.images import ImageCache
from releasedocs.pipeline import run_all, run_releases, scaffold_pages, sync_api_docs
from releasedocs.state import RunContext

log = structlog.get_logger()

COMMANDS = ("all", "releases", "api", "scaffold")


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings, verbose: bool = False) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    level_name = "DEBUG" if verbose else settings.logging.level
    log_level = logging.getLevelNamesMapping()[level_name]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="releasedocs",
        description=(
            "Generate MDX release notes from a shared wiki and API reference "
            "pages from OpenAPI descriptions."
        ),
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=COMMANDS,
        default="all",
        help="Step to run (default: all).",
    )
    parser.add_argument(
        "--config",
        help="Path to a releasedocs.yaml file (default: ./releasedocs.yaml, then user config dir).",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Docs site root that output paths are relative to (default: cwd).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


async def _run(command: str, settings: Settings, root: Path) -> None:
    http_client = build_http_client(settings.fetcher, settings.share.user_agent)
    fetcher = Fetcher(http_client)
    images = ImageCache(
        fetcher,
        root / settings.images.cache_dir,
        settings.images.public_prefix,
        jpeg_quality=settings.images.jpeg_quality,
        timeout=settings.fetcher.image_timeout_seconds,
    )
    ctx = RunContext(
        settings=settings,
        fetcher=fetcher,
        images=images,
        http_client=http_client,
        root=root,
    )

    try:
        if command == "all":
            await run_all(ctx)
        elif command == "releases":
            await run_releases(ctx)
        elif command == "api":
            await sync_api_docs(ctx)
        elif command == "scaffold":
            scaffold_pages(ctx)
    finally:
        await http_client.aclose()
        log.info("run_finished", command=command, images_cached=len(images.entries))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = load_settings(args.config)
    _setup_logging(settings, verbose=args.verbose)
    log.info("run_starting", version=__version__, command=args.command)

    try:
        asyncio.run(_run(args.command, settings, Path(args.root)))
    except KeyboardInterrupt:
        log.warning("run_interrupted")
        return 130
    except Exception:
        log.error("run_unexpected_error", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
