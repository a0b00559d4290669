"""CLI entry point for weavefeed.

Runs the query-and-hydrate pipeline once (or across several pages) and
prints one line per post. SIGINT/SIGTERM cancel the in-flight page cleanly.

Examples:
    ```bash
    python -m weavefeed --tag App-Name=PublicSquare --tag Content-Type=text/plain
    python -m weavefeed --config config/feed.yaml --pages 3 --json
    weavefeed --tag App-Name=PublicSquare --sort oldest --page-size 25
    ```
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from weavefeed.core.exceptions import (
    Cancelled,
    ConfigurationError,
    InvalidArgument,
    TransportError,
)
from weavefeed.core.logger import Logger, StructuredFormatter
from weavefeed.core.yaml import load_yaml
from weavefeed.models import HydratedPost, SortOrder, TagFilter
from weavefeed.pipeline import FeedPipeline


DEFAULT_CONFIG = Path("config") / "feed.yaml"

SORT_CHOICES: dict[str, SortOrder] = {
    "newest": SortOrder.NEWEST_FIRST,
    "oldest": SortOrder.OLDEST_FIRST,
}

logger = Logger("cli")


def parse_tags(raw_tags: list[str]) -> list[TagFilter]:
    """Turn repeated ``NAME=VALUE`` flags into filters, merging values per name.

    Raises:
        ValueError: If a flag has no ``=`` or an empty name.
    """
    merged: dict[str, list[str]] = {}
    for raw in raw_tags:
        name, sep, value = raw.partition("=")
        if not sep or not name:
            raise ValueError(f"invalid --tag {raw!r}: expected NAME=VALUE")
        values = merged.setdefault(name, [])
        if value not in values:
            values.append(value)
    return [TagFilter(name=name, values=tuple(values)) for name, values in merged.items()]


def format_post(post: HydratedPost, *, as_json: bool) -> str:
    """Render a post as a JSON line or a tab-separated text line."""
    if as_json:
        return json.dumps(post.to_dict(), ensure_ascii=False)
    timestamp = post.ref.block_timestamp if post.ref.block_timestamp is not None else "pending"
    body = post.content if post.ok else f"[{post.error}] {post.reason or ''}".rstrip()
    return f"{post.id}\t{timestamp}\t{body}"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="weavefeed",
        description="Query a gateway's transaction index by tag and print hydrated posts",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Pipeline config path (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--tag",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Tag filter; repeat for more filters or values (overrides config filters)",
    )
    parser.add_argument("--page-size", type=int, help="Posts per page")
    parser.add_argument("--sort", choices=list(SORT_CHOICES), help="Sort order by block height")
    parser.add_argument("--cursor", help="Start from this pagination cursor")
    parser.add_argument(
        "--pages", type=int, default=1, help="Maximum number of pages to fetch (default: 1)"
    )
    parser.add_argument("--concurrency", type=int, help="Maximum concurrent payload fetches")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    parser.add_argument("--json", action="store_true", help="Print posts as JSON lines")
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install ``StructuredFormatter`` on a stderr root handler."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML file as a dict, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.debug("config_not_found", path=str(path))
        return {}
    return load_yaml(path)


async def run(args: argparse.Namespace) -> int:
    """Fetch and print pages; returns the process exit code."""
    try:
        pipeline = FeedPipeline.from_dict(_load_yaml_dict(args.config))
        filters = parse_tags(args.tag) if args.tag else None
    except (ConfigurationError, ValueError) as e:
        logger.error("invalid_arguments", error=str(e))
        return 2

    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, cancel.set)

    printed = 0
    next_cursor: str | None = None
    try:
        async with pipeline:
            async for page in pipeline.iter_pages(
                filters,
                page_size=args.page_size,
                sort_order=SORT_CHOICES[args.sort] if args.sort else None,
                cursor=args.cursor,
                concurrency=args.concurrency,
                max_pages=args.pages,
                cancel=cancel,
            ):
                for post in page:
                    print(format_post(post, as_json=args.json))
                    printed += 1
                next_cursor = page.next_cursor
    except InvalidArgument as e:
        logger.error("invalid_arguments", error=str(e))
        return 2
    except Cancelled:
        logger.info("interrupted", printed=printed)
        return 130
    except TransportError as e:
        logger.error("fetch_failed", error=str(e), status=e.status, timeout=e.timeout)
        return 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)

    logger.info("completed", printed=printed, next_cursor=next_cursor)
    return 0


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    args = parse_args()
    setup_logging(args.log_level)
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli()
