"""Pydantic models for the discovery pipeline."""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CrawlStatus(str, Enum):
    IDLE = "idle"
    CRAWLING = "crawling"
    PAUSED = "paused"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (CrawlStatus.COMPLETE, CrawlStatus.ERROR)


class CrawlTask(BaseModel):
    """One planned fetch. Never mutated once queued."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Absolute, normalized URL")
    depth: int = Field(default=0, ge=0, description="0 = seed")
    parent_path: list[str] = Field(
        default_factory=list,
        description="Human-readable page names from the root down to the parent",
    )
    priority: int = Field(default=0, description="Lower sorts first")
    resolve_from: str | None = Field(
        default=None,
        description="URL as linked, before normalization; relative links on the page resolve against it",
    )


class CrawlStats(BaseModel):
    pages_found: int = 0
    pages_processed: int = 0
    current_depth: int = 0
    estimated_total: int = Field(
        default=0,
        description="Approximate projection of the crawl size, only for progress display",
    )
    start_time: float = Field(default_factory=time.time)
    failed_pages: list[str] = Field(default_factory=list)

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    @property
    def progress(self) -> float:
        """Best-effort completion ratio in [0, 1]; the estimate can be far off."""
        if self.estimated_total <= 0:
            return 0.0
        return min(self.pages_processed / self.estimated_total, 1.0)


class PageData(BaseModel):
    loc: str = Field(description="Canonical URL reached at this node")


class PageTreeNode(BaseModel):
    name: str
    path: str
    children: list[PageTreeNode] = Field(default_factory=list)
    page: PageData | None = None

    def child(self, name: str) -> PageTreeNode | None:
        for node in self.children:
            if node.name == name:
                return node
        return None


PageTreeNode.model_rebuild()


class CrawlState(BaseModel):
    """Full snapshot handed to progress reporters.

    Reporters receive the live object; they must treat it as read-only.
    """

    discovered_urls: set[str] = Field(default_factory=set)
    queue: list[CrawlTask] = Field(default_factory=list)
    tree: PageTreeNode = Field(
        default_factory=lambda: PageTreeNode(name="Loading...", path="/")
    )
    status: CrawlStatus = CrawlStatus.IDLE
    stats: CrawlStats = Field(default_factory=CrawlStats)
