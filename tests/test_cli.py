"""Tests for site_discovery.cli module."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from site_discovery.cli import _read_urls, build_parser, main
from site_discovery.config import Settings
from site_discovery.crawler import SeedError
from site_discovery.models import CrawlState, CrawlStatus
from site_discovery.tree import new_root


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch("site_discovery.config.load_dotenv"):
        yield


def _complete_state() -> CrawlState:
    state = CrawlState(status=CrawlStatus.COMPLETE, tree=new_root("example.com", "https://example.com"))
    state.stats.pages_processed = 1
    state.stats.pages_found = 1
    return state


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["example.com"])
        assert args.url == "example.com"
        assert args.max_depth is None
        assert args.relay is None
        assert not args.no_crawl
        assert not args.json

    def test_relay_chain_order(self):
        args = build_parser().parse_args(
            ["example.com", "--relay", "codetabs", "--relay", "cors_sh"]
        )
        assert args.relay == ["codetabs", "cors_sh"]

    def test_unknown_relay_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["example.com", "--relay", "nope"])

    def test_render_is_not_a_relay_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["example.com", "--relay", "render"])


class TestReadUrls:
    def test_skips_blanks_and_comments(self, tmp_path):
        path = tmp_path / "urls.txt"
        path.write_text("# sitemap\nhttps://example.com/a\n\n  https://example.com/b  \n", encoding="utf-8")
        assert _read_urls(str(path)) == ["https://example.com/a", "https://example.com/b"]


class TestMain:
    def test_no_crawl_requires_known_urls(self):
        with pytest.raises(SystemExit):
            main(["example.com", "--no-crawl"])

    def test_crawl_applies_overrides(self, capsys):
        with patch("site_discovery.cli.ProgressiveCrawler") as crawler_cls:
            crawler = crawler_cls.return_value
            crawler.start_crawl = AsyncMock(return_value=_complete_state())

            code = main([
                "example.com", "--max-depth", "1", "--max-pages", "20",
                "--delay", "0", "--relay", "codetabs",
            ])

        assert code == 0
        settings = crawler_cls.call_args.kwargs["settings"]
        assert isinstance(settings, Settings)
        assert settings.max_depth == 1
        assert settings.max_pages == 20
        assert settings.crawl_delay == 0.0
        assert settings.relay_order == ("codetabs",)
        crawler.start_crawl.assert_awaited_once_with("example.com", known_urls=None)
        assert "example.com" in capsys.readouterr().out

    def test_seed_error_returns_1(self, capsys):
        with patch("site_discovery.cli.ProgressiveCrawler") as crawler_cls:
            crawler_cls.return_value.start_crawl = AsyncMock(side_effect=SeedError("Invalid seed URL"))
            code = main(["http://"])

        assert code == 1
        assert "Invalid seed URL" in capsys.readouterr().err

    def test_incomplete_crawl_returns_1(self):
        state = _complete_state()
        state.status = CrawlStatus.ERROR
        with patch("site_discovery.cli.ProgressiveCrawler") as crawler_cls:
            crawler_cls.return_value.start_crawl = AsyncMock(return_value=state)
            assert main(["example.com"]) == 1

    def test_no_crawl_builds_tree_from_file(self, tmp_path, capsys):
        urls = tmp_path / "urls.txt"
        urls.write_text(
            "https://example.com/docs/intro\nhttps://example.com/about\nhttps://other.com/x\n",
            encoding="utf-8",
        )

        code = main(["example.com", "--known-urls", str(urls), "--no-crawl", "--json"])

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "complete"
        assert data["stats"]["pages_found"] == 2
        names = [child["name"] for child in data["tree"]["children"]]
        assert names == ["about", "docs"]

    def test_writes_output_file(self, tmp_path):
        urls = tmp_path / "urls.txt"
        urls.write_text("https://example.com/pricing\n", encoding="utf-8")
        out = tmp_path / "tree.txt"

        code = main(["example.com", "--known-urls", str(urls), "--no-crawl", "-o", str(out)])

        assert code == 0
        text = out.read_text(encoding="utf-8")
        assert "example.com" in text
        assert "pricing" in text

    def test_summary_counts_pages(self, tmp_path, capsys):
        urls = tmp_path / "urls.txt"
        urls.write_text("https://example.com/docs/intro\nhttps://example.com/about\n", encoding="utf-8")

        main(["example.com", "--known-urls", str(urls), "--no-crawl"])

        assert "4 nodes (2 pages), 2 levels deep" in capsys.readouterr().err

    def test_known_urls_passed_to_crawl(self, tmp_path):
        urls = tmp_path / "urls.txt"
        urls.write_text("https://example.com/a\n", encoding="utf-8")
        with patch("site_discovery.cli.ProgressiveCrawler") as crawler_cls:
            crawler = crawler_cls.return_value
            crawler.start_crawl = AsyncMock(return_value=_complete_state())
            main(["example.com", "--known-urls", str(urls)])

        crawler.start_crawl.assert_awaited_once_with(
            "example.com", known_urls=["https://example.com/a"]
        )
