"""Command-line interface for SiteDiscovery."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from site_discovery.config import Settings
from site_discovery.crawler import ProgressiveCrawler, SeedError
from site_discovery.models import CrawlState, CrawlStatus
from site_discovery.relays import RelayKind, list_relays
from site_discovery.tree import iter_pages, render_outline, tree_stats

LINE = "=" * 60


def _out(msg: str = "") -> None:
    """Print a status message to stderr so it doesn't mix with the result."""
    print(msg, file=sys.stderr, flush=True)


class ConsoleReporter:
    """One stderr line per snapshot."""

    def report(self, state: CrawlState) -> None:
        stats = state.stats
        line = (
            f"  [{state.status.value:>8}] {stats.pages_processed}/{stats.pages_found} pages"
            f" | {len(state.queue)} queued | depth {stats.current_depth}"
            f" | {len(stats.failed_pages)} failed"
        )
        if stats.estimated_total:
            line += f" | ~{stats.progress:.0%}"
        _out(line)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-discovery",
        description="Discover a website's page structure by crawling its links.",
    )
    parser.add_argument("url", help="Seed URL (https:// is assumed when no scheme is given)")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum link depth from the seed (default: 3)",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Maximum number of pages to discover (default: 500)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Pages fetched concurrently per batch (default: 5)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait between batches (default: 0.5)",
    )
    parser.add_argument(
        "--relay",
        action="append",
        choices=[name for name in list_relays() if name != RelayKind.RENDER.value],
        default=None,
        help="Proxy relay to use, in fallback order. Repeat to build a chain. "
        "The render relay is enabled with --render-relay-url.",
    )
    parser.add_argument(
        "--render-relay-url",
        default=None,
        help="Headless rendering endpoint tried after all proxies",
    )
    parser.add_argument(
        "--known-urls",
        default=None,
        help="File with one known URL per line (e.g. from a sitemap) to pre-seed the tree",
    )
    parser.add_argument(
        "--no-crawl",
        action="store_true",
        help="Only build the tree from --known-urls, without fetching anything",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full crawl state as JSON instead of a tree outline",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output file path (default: stdout)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def _read_urls(path: str) -> list[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_crawl and not args.known_urls:
        parser.error("--no-crawl requires --known-urls")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings = Settings.from_env()

    # Apply CLI overrides
    overrides = {}
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.batch_size is not None:
        overrides["batch_size"] = args.batch_size
    if args.delay is not None:
        overrides["crawl_delay"] = args.delay
    if args.relay:
        overrides["relay_order"] = tuple(args.relay)
    if args.render_relay_url is not None:
        overrides["render_relay_url"] = args.render_relay_url
    if overrides:
        settings = replace(settings, **overrides)

    known_urls = _read_urls(args.known_urls) if args.known_urls else None

    _out(f"\n{LINE}")
    _out("  SiteDiscovery")
    _out(LINE)
    _out(f"  URL:      {args.url}")
    _out(f"  Bounds:   depth {settings.max_depth}, {settings.max_pages} pages")
    if known_urls is not None:
        _out(f"  Known:    {len(known_urls)} URLs from {args.known_urls}")
    _out(LINE)

    crawler = ProgressiveCrawler(ConsoleReporter(), settings=settings)
    try:
        if args.no_crawl:
            state = crawler.load_urls(args.url, known_urls or [])
        else:
            state = asyncio.run(crawler.start_crawl(args.url, known_urls=known_urls))
    except SeedError as exc:
        _out(f"  [!] {exc}")
        return 1

    nodes, depth = tree_stats(state.tree)
    _out(LINE)
    _out(f"  Status:   {state.status.value}")
    _out(f"  Pages:    {state.stats.pages_processed} processed, {state.stats.pages_found} found")
    _out(f"  Failed:   {len(state.stats.failed_pages)}")
    pages = sum(1 for _ in iter_pages(state.tree))
    _out(f"  Tree:     {nodes} nodes ({pages} pages), {depth} levels deep")
    _out(LINE)

    if args.json:
        output = json.dumps(state.model_dump(mode="json"), indent=2, ensure_ascii=False)
    else:
        output = render_outline(state.tree)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        _out(f"Output written to {args.output}")
    else:
        print(output)

    return 0 if state.status is CrawlStatus.COMPLETE else 1


if __name__ == "__main__":
    sys.exit(main())
