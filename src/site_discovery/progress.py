"""Progress reporting contract for crawl snapshots."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from site_discovery.models import CrawlState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[CrawlState], None]


@runtime_checkable
class ProgressReporter(Protocol):
    """
    Receives the live crawl state at start, after every batch, and on every
    status transition. Calls are synchronous and never batched; throttling
    is the reporter's job. The state must not be mutated.
    """

    def report(self, state: CrawlState) -> None: ...


class CallbackReporter:
    """Adapts a plain ``on_progress(state)`` callable."""

    def __init__(self, callback: ProgressCallback) -> None:
        self._callback = callback

    def report(self, state: CrawlState) -> None:
        self._callback(state)


class LoggingReporter:
    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def report(self, state: CrawlState) -> None:
        stats = state.stats
        logger.log(
            self._level,
            "[%s] %d/%d processed, %d queued, depth %d, %d failed",
            state.status.value,
            stats.pages_processed,
            stats.pages_found,
            len(state.queue),
            stats.current_depth,
            len(stats.failed_pages),
        )


class NullReporter:
    def report(self, state: CrawlState) -> None:
        pass


def as_reporter(on_progress: ProgressReporter | ProgressCallback | None) -> ProgressReporter:
    if on_progress is None:
        return NullReporter()
    if isinstance(on_progress, ProgressReporter):
        return on_progress
    return CallbackReporter(on_progress)
