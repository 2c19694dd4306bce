"""Shared fixtures for SiteDiscovery tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from site_discovery.config import Settings
from site_discovery.fetcher import RelayChain


@pytest.fixture()
def settings() -> Settings:
    """Fast settings: no delay between batches, two proxies."""
    return Settings(crawl_delay=0.0, relay_order=("cors_sh", "codetabs"))


SAMPLE_HTML = """\
<!DOCTYPE html>
<html>
<head>
    <title>Example</title>
    <link href="/styles/main.css" rel="stylesheet">
</head>
<body>
    <nav>
        <a href="/about">About</a>
        <a href='/contact/'>Contact</a>
        <a href="#top">Top</a>
        <a href="mailto:hello@example.com">Mail</a>
        <a href="tel:+15555550100">Call</a>
        <a href="javascript:void(0)">Menu</a>
    </nav>
    <a href="https://other.com/x">Partner</a>
    <a href="https://blog.example.com/post">Blog</a>
    <a href="/files/brochure.pdf">Brochure</a>
    <img src="/logo.png"><a HREF="/images/Logo.PNG">Logo</a>
    <a href="/about#team">Team</a>
    <a href="http://[broken">Broken</a>
</body>
</html>
"""


def page(*hrefs: str) -> str:
    """Minimal markup linking to ``hrefs``."""
    anchors = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><body>{anchors}</body></html>"


def make_chain(
    pages: dict[str, str],
    failures: dict[str, Exception] | None = None,
) -> MagicMock:
    """Stand-in relay chain serving ``pages`` by URL; unknown URLs return an empty page."""
    failures = failures or {}

    async def fetch_page(url: str, abort=None) -> str:
        if url in failures:
            raise failures[url]
        return pages.get(url, "<html></html>")

    chain = MagicMock(spec=RelayChain)
    chain.fetch_page = AsyncMock(side_effect=fetch_page)
    return chain


def fetched_urls(chain: MagicMock) -> list[str]:
    return [call.args[0] for call in chain.fetch_page.call_args_list]


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
