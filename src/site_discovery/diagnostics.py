"""Optional introspection port, passed explicitly to the crawler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from site_discovery.crawler import ProgressiveCrawler


class CrawlDiagnostics:
    """No-op base; override the hooks you care about."""

    def crawl_started(self, crawler: ProgressiveCrawler) -> None:
        pass

    def batch_completed(self, batch_number: int, urls: list[str]) -> None:
        pass

    def page_fetched(self, url: str, size: int) -> None:
        pass

    def page_failed(self, url: str, error: Exception) -> None:
        pass


@dataclass
class RecordingDiagnostics(CrawlDiagnostics):
    """Keeps every event in memory for debugging and tests."""

    crawler: Any = None
    batches: list[tuple[int, list[str]]] = field(default_factory=list)
    fetched: list[tuple[str, int]] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)

    def crawl_started(self, crawler: ProgressiveCrawler) -> None:
        self.crawler = crawler

    def batch_completed(self, batch_number: int, urls: list[str]) -> None:
        self.batches.append((batch_number, list(urls)))

    def page_fetched(self, url: str, size: int) -> None:
        self.fetched.append((url, size))

    def page_failed(self, url: str, error: Exception) -> None:
        self.failures.append((url, str(error)))
