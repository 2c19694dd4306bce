"""SiteDiscovery - progressive page-tree discovery for sites without a sitemap."""

__version__ = "0.1.0"

from site_discovery.crawler import ProgressiveCrawler, SeedError
from site_discovery.fetcher import RelayChain
from site_discovery.models import CrawlState, CrawlStats, CrawlStatus, CrawlTask, PageTreeNode
from site_discovery.relays import RelayError

__all__ = [
    "CrawlState",
    "CrawlStats",
    "CrawlStatus",
    "CrawlTask",
    "PageTreeNode",
    "ProgressiveCrawler",
    "RelayChain",
    "RelayError",
    "SeedError",
]
