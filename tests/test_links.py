"""Tests for site_discovery.links module."""

from __future__ import annotations

from site_discovery.links import accept_url, extract_links, iter_links, normalize_url, same_domain

from .conftest import SAMPLE_HTML, page


class TestNormalizeUrl:
    def test_strips_trailing_slash(self):
        assert normalize_url("https://example.com/about/") == "https://example.com/about"

    def test_strips_only_one_trailing_slash(self):
        assert normalize_url("https://example.com/a//") == "https://example.com/a/"

    def test_root_slash_removed(self):
        assert normalize_url("https://example.com/") == "https://example.com"

    def test_drops_fragment(self):
        assert normalize_url("https://example.com/about#team") == "https://example.com/about"

    def test_lowercases_scheme_and_host(self):
        assert normalize_url("HTTPS://Example.COM/About") == "https://example.com/About"

    def test_keeps_query_and_port(self):
        assert (
            normalize_url("https://example.com:8443/search/?q=1")
            == "https://example.com:8443/search?q=1"
        )


class TestSameDomain:
    def test_same_domain(self):
        assert same_domain("https://example.com/page", "example.com")

    def test_subdomain_is_different(self):
        assert not same_domain("https://sub.example.com/page", "example.com")

    def test_scheme_does_not_matter(self):
        assert same_domain("http://example.com/page", "example.com")

    def test_invalid_url(self):
        assert not same_domain("http://[broken", "example.com")


class TestExtractLinks:
    def test_sample_page(self):
        links = extract_links(SAMPLE_HTML, "https://example.com")
        assert links == {
            "https://example.com/about",
            "https://example.com/contact",
            "https://example.com/styles/main.css",
        }

    def test_filters_other_hosts(self):
        links = extract_links(SAMPLE_HTML, "https://example.com")
        assert all(same_domain(link, "example.com") for link in links)

    def test_skips_non_http_schemes(self):
        html = page("mailto:a@b.c", "tel:123", "javascript:alert(1)", "JavaScript:x", "ftp://example.com/f")
        assert extract_links(html, "https://example.com") == set()

    def test_skips_fragment_only_links(self):
        assert extract_links(page("#section", "#"), "https://example.com") == set()

    def test_skips_binary_extensions(self):
        html = page("/a.pdf", "/b.jpg", "/c.jpeg", "/d.png", "/e.GIF", "/f.pdf?download=1")
        assert extract_links(html, "https://example.com") == set()

    def test_resolves_relative_to_page(self):
        links = extract_links(page("team", "../jobs"), "https://example.com/about/company")
        assert links == {
            "https://example.com/about/team",
            "https://example.com/jobs",
        }

    def test_trailing_slash_variants_collapse(self):
        links = extract_links(page("/about", "/about/", "/about#x"), "https://example.com")
        assert links == {"https://example.com/about"}

    def test_explicit_base_domain(self):
        links = extract_links(page("https://example.com/a"), "https://mirror.test/x", "example.com")
        assert links == {"https://example.com/a"}

    def test_malformed_href_is_dropped(self):
        links = extract_links(page("http://[broken", "/ok"), "https://example.com")
        assert links == {"https://example.com/ok"}

    def test_tolerates_unclosed_markup(self):
        html = '<div><a href="/one">one<a href = \'/two\' <p'
        links = extract_links(html, "https://example.com")
        assert links == {"https://example.com/one", "https://example.com/two"}

    def test_empty_markup(self):
        assert extract_links("", "https://example.com") == set()


class TestAcceptUrl:
    def test_normalizes_crawlable_url(self):
        assert accept_url(" https://Example.com/blog/ ", "example.com") == "https://example.com/blog"

    def test_rejects_other_schemes_on_same_host(self):
        assert accept_url("ftp://example.com/file", "example.com") is None

    def test_rejects_foreign_host(self):
        assert accept_url("https://other.com/x", "example.com") is None

    def test_rejects_binary(self):
        assert accept_url("https://example.com/files/report.PDF", "example.com") is None

    def test_rejects_malformed(self):
        assert accept_url("http://[broken", "example.com") is None

    def test_rejects_without_domain(self):
        assert accept_url("http://", "") is None


class TestIterLinks:
    def test_keeps_resolved_form(self):
        pairs = dict(iter_links(page("post-1/"), "https://example.com/blog/"))
        assert pairs == {"https://example.com/blog/post-1": "https://example.com/blog/post-1/"}
