"""Progressive discovery crawl: bounded BFS over same-domain links.

One control loop pulls priority-ordered batches off the queue, fetches every
task in the batch concurrently through the relay chain, and reports a
snapshot after each batch. Work is bounded by depth, by a page cap enforced
at enqueue time, and by a fixed delay between batches.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Iterable
from urllib.parse import urlsplit

from site_discovery.config import Settings
from site_discovery.diagnostics import CrawlDiagnostics
from site_discovery.fetcher import RelayChain
from site_discovery.links import accept_url, iter_links, normalize_url
from site_discovery.models import CrawlState, CrawlStatus, CrawlTask
from site_discovery.progress import ProgressCallback, ProgressReporter, as_reporter
from site_discovery.relays import RelayAborted, RelayError
from site_discovery.tree import build_tree_from_urls, insert_page, new_root, page_name

logger = logging.getLogger(__name__)

SEED_PRIORITY = 0
NAVIGATION_PRIORITY = 100  # depth-1 pages, likely primary navigation
DEPTH_PRIORITY_STEP = 1000
ESTIMATE_SAMPLE_PAGES = 10


class SeedError(ValueError):
    """Raised when the seed URL cannot be parsed."""


def _with_scheme(seed: str) -> str:
    raw = seed.strip()
    if raw and "://" not in raw:
        raw = f"https://{raw}"
    return raw


def normalize_seed(seed: str) -> tuple[str, str, str]:
    """
    Turn user input into ``(seed_url, origin, domain)``.

    A missing scheme defaults to https.
    """
    raw = _with_scheme(seed)
    if not raw:
        raise SeedError("Seed URL is empty")

    try:
        parts = urlsplit(raw)
        host = parts.hostname
        parts.port  # noqa: B018 - raises ValueError on a bad port
    except ValueError as exc:
        raise SeedError(f"Invalid seed URL {seed!r}: {exc}") from exc

    if parts.scheme.lower() not in ("http", "https") or not host:
        raise SeedError(f"Invalid seed URL {seed!r}")
    if any(ch.isspace() for ch in parts.netloc):
        raise SeedError(f"Invalid seed URL {seed!r}: whitespace in host")

    origin = f"{parts.scheme.lower()}://{parts.netloc.lower()}"
    return normalize_url(raw), origin, host


class ProgressiveCrawler:
    """
    Discovers a site's page tree by crawling from a seed URL.

    Control surface: ``start_crawl``, ``pause``, ``resume``, ``stop``,
    ``get_state``. State transitions are
    ``idle -> crawling -> (paused <-> crawling) -> complete | error``.

    Args:
        on_progress: Reporter or plain callable receiving the live
            ``CrawlState`` at start, after each batch, and on every
            status change.
        settings: Crawl bounds, batch size, delay, relay configuration.
        relay_chain: Fetch backend; defaults to a ``RelayChain`` built from
            ``settings``.
        diagnostics: Optional introspection sink.
    """

    def __init__(
        self,
        on_progress: ProgressReporter | ProgressCallback | None = None,
        *,
        settings: Settings | None = None,
        relay_chain: RelayChain | None = None,
        diagnostics: CrawlDiagnostics | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._reporter = as_reporter(on_progress)
        self._chain = relay_chain or RelayChain(self.settings)
        self._diagnostics = diagnostics or CrawlDiagnostics()

        self.batch_size = max(self.settings.batch_size, 1)
        self.crawl_delay = self.settings.crawl_delay
        self.max_depth = self.settings.max_depth
        self.max_pages = self.settings.max_pages

        self.seed_url = ""
        self.base_url = ""
        self.base_domain = ""

        self._state = CrawlState()
        self._enqueued: set[str] = set()
        self._abort = asyncio.Event()
        self._loop_task: asyncio.Task | None = None
        self._batch_number = 0

    async def start_crawl(
        self,
        seed_url: str,
        max_depth: int | None = None,
        max_pages: int | None = None,
        known_urls: Iterable[str] | None = None,
    ) -> CrawlState:
        """
        Crawl from ``seed_url`` until the queue empties, the page cap is hit,
        or the crawl is paused or stopped.

        ``known_urls`` (e.g. from a sitemap) are placed in the tree and queued
        behind the seed so the crawl supplements them.

        Raises:
            SeedError: if the seed cannot be parsed; status becomes ``error``.
        """
        self._begin(seed_url, max_depth, max_pages)
        self._enqueue(self.seed_url, 0, [], resolve_from=_with_scheme(seed_url))
        if known_urls is not None:
            self._seed_known(known_urls)

        self._state.status = CrawlStatus.CRAWLING
        self._state.stats.start_time = time.time()
        logger.info(
            "Starting crawl of %s (max depth %d, max pages %d)",
            self.seed_url, self.max_depth, self.max_pages,
        )
        self._diagnostics.crawl_started(self)
        self._emit()

        self._loop_task = asyncio.ensure_future(self._run_loop())
        await self._loop_task
        return self._state

    def load_urls(self, seed_url: str, urls: Iterable[str]) -> CrawlState:
        """Build the state from already-known URLs without fetching anything."""
        self._begin(seed_url, None, None)
        state = self._state
        for url in urls:
            link = accept_url(url, self.base_domain)
            if link is None:
                logger.debug("Skipping known URL %r", url)
            else:
                state.discovered_urls.add(link)

        state.stats.pages_found = len(state.discovered_urls)
        state.tree = build_tree_from_urls(sorted(state.discovered_urls), root=state.tree)
        state.status = CrawlStatus.COMPLETE
        logger.info("Loaded %d known URLs for %s", state.stats.pages_found, self.base_domain)
        self._emit()
        return state

    def pause(self) -> bool:
        """Hold back the next batch; the in-flight batch still finishes."""
        if self._state.status is not CrawlStatus.CRAWLING:
            return False
        self._state.status = CrawlStatus.PAUSED
        logger.info("Crawl paused (%d queued)", len(self._state.queue))
        self._emit()
        return True

    def resume(self) -> asyncio.Task | None:
        """
        Continue a paused crawl. Returns the task driving the loop, which the
        caller should await, or ``None`` if the crawl was not paused.
        """
        if self._state.status is not CrawlStatus.PAUSED:
            return None
        self._state.status = CrawlStatus.CRAWLING
        logger.info("Crawl resumed (%d queued)", len(self._state.queue))
        self._emit()

        # The previous loop may still be draining its batch; it will see the
        # status flip back and keep going.
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.ensure_future(self._run_loop())
        return self._loop_task

    def stop(self) -> None:
        """Finish the crawl now and abort in-flight fetches."""
        if self._state.status.is_terminal:
            return
        self._state.status = CrawlStatus.COMPLETE
        self._abort.set()
        logger.info("Crawl stopped after %d pages", self._state.stats.pages_processed)
        self._emit()

    def get_state(self) -> CrawlState:
        return self._state

    def _begin(self, seed_url: str, max_depth: int | None, max_pages: int | None) -> None:
        if self._state.status in (CrawlStatus.CRAWLING, CrawlStatus.PAUSED):
            raise RuntimeError("A crawl is already in progress")

        self.max_depth = self.settings.max_depth if max_depth is None else max_depth
        self.max_pages = self.settings.max_pages if max_pages is None else max_pages
        if self.max_depth < 0 or self.max_pages < 1:
            raise ValueError("max_depth must be >= 0 and max_pages >= 1")

        self._state = CrawlState()
        self._enqueued = set()
        self._abort = asyncio.Event()
        self._loop_task = None
        self._batch_number = 0

        try:
            self.seed_url, self.base_url, self.base_domain = normalize_seed(seed_url)
        except SeedError:
            logger.error("Cannot start crawl: invalid seed %r", seed_url)
            self._state.status = CrawlStatus.ERROR
            self._emit()
            raise

        self._state.tree = new_root(self.base_domain, self.base_url)

    def _seed_known(self, urls: Iterable[str]) -> None:
        state = self._state
        for url in urls:
            link = accept_url(url, self.base_domain)
            if link is None:
                logger.debug("Skipping known URL %r", url)
                continue
            if self.max_depth < 1 or state.stats.pages_found >= self.max_pages:
                break
            insert_page(link, state.tree)
            self._enqueue(link, 1, [page_name(self.seed_url)], resolve_from=url.strip())

    async def _run_loop(self) -> None:
        try:
            await self._crawl_loop()
        except Exception:
            logger.exception("Crawl of %s failed", self.base_domain)
            self._state.status = CrawlStatus.ERROR
            self._emit()
            raise

    async def _crawl_loop(self) -> None:
        state = self._state
        stats = state.stats

        while (
            state.queue
            and state.status is CrawlStatus.CRAWLING
            and stats.pages_processed < self.max_pages
        ):
            state.queue.sort(key=lambda task: task.priority)
            batch = state.queue[: self.batch_size]
            del state.queue[: self.batch_size]
            self._batch_number += 1
            logger.debug("Batch %d: %s", self._batch_number, [task.url for task in batch])

            results = await asyncio.gather(
                *(self._process_page(task) for task in batch),
                return_exceptions=True,
            )

            self._diagnostics.batch_completed(self._batch_number, [task.url for task in batch])
            if state.status is not CrawlStatus.COMPLETE:
                self._emit()

            for result in results:
                if isinstance(result, Exception):
                    raise result

            if state.queue and state.status is CrawlStatus.CRAWLING:
                await self._wait_between_batches()

        if state.status is CrawlStatus.CRAWLING:
            state.status = CrawlStatus.COMPLETE
            logger.info(
                "Crawl complete: %d pages processed, %d failed, %.1fs",
                stats.pages_processed, len(stats.failed_pages), stats.elapsed,
            )
            self._emit()

    async def _wait_between_batches(self) -> None:
        if self.crawl_delay <= 0:
            await asyncio.sleep(0)
            return
        # stop() wakes the wait early
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._abort.wait(), timeout=self.crawl_delay)

    async def _process_page(self, task: CrawlTask) -> None:
        state = self._state
        stats = state.stats

        if task.url in state.discovered_urls:
            return
        # Claim the URL before the first await so no sibling can fetch it too
        state.discovered_urls.add(task.url)
        stats.pages_processed += 1

        try:
            html = await self._chain.fetch_page(task.url, self._abort)
        except RelayAborted:
            logger.debug("Fetch of %s cancelled by stop()", task.url)
            return
        except RelayError as exc:
            logger.warning("Failed to crawl %s: %s", task.url, exc)
            stats.failed_pages.append(task.url)
            self._diagnostics.page_failed(task.url, exc)
            return

        if self._abort.is_set():
            return
        self._diagnostics.page_fetched(task.url, len(html))

        # Resolve against the URL as linked: "/blog/" and "/blog" differ for relative hrefs
        links: dict[str, str] = {}
        for link, absolute in iter_links(html, task.resolve_from or task.url, self.base_domain):
            links.setdefault(link, absolute)
        insert_page(task.url, state.tree)

        if task.depth < self.max_depth:
            parent_path = [*task.parent_path, page_name(task.url)]
            for link in sorted(links):
                if stats.pages_found >= self.max_pages:
                    break
                if link not in state.discovered_urls:
                    self._enqueue(link, task.depth + 1, parent_path, resolve_from=links[link])

        stats.current_depth = max(stats.current_depth, task.depth)

        # Rough branching-factor projection; only drives a progress display
        if stats.pages_processed < ESTIMATE_SAMPLE_PAGES:
            remaining_depth = max(self.max_depth - task.depth, 0)
            stats.estimated_total = min(len(links) ** remaining_depth, self.max_pages)

    def _enqueue(
        self,
        url: str,
        depth: int,
        parent_path: list[str],
        resolve_from: str | None = None,
    ) -> bool:
        if url in self._enqueued:
            return False

        if url == self.seed_url:
            priority = SEED_PRIORITY
        elif depth == 1:
            priority = NAVIGATION_PRIORITY
        else:
            priority = depth * DEPTH_PRIORITY_STEP

        self._state.queue.append(
            CrawlTask(
                url=url,
                depth=depth,
                parent_path=parent_path,
                priority=priority,
                resolve_from=resolve_from,
            )
        )
        self._enqueued.add(url)
        self._state.stats.pages_found += 1
        return True

    def _emit(self) -> None:
        self._reporter.report(self._state)
