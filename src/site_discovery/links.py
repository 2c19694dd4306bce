"""Tolerant link extraction from raw markup.

Uses a regex scan instead of a DOM parser so that malformed or truncated
markup returned by a relay still yields its links.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from urllib.parse import urljoin, urlsplit, urlunsplit

HREF_PATTERN = re.compile(r"""href\s*=\s*["']([^"']+)["']""", re.IGNORECASE)

_SKIP_PREFIXES = ("#", "mailto:", "tel:", "javascript:")
_BINARY_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png", ".gif")
_CRAWLABLE_SCHEMES = ("http", "https")


def normalize_url(url: str) -> str:
    """
    Canonical form used for de-duplication.

    Lowercases scheme and host, drops the fragment, and strips one trailing
    slash from the path, so ``/about`` and ``/about/`` collapse. Ports, path
    case, and the query string are kept as-is.
    """
    parts = urlsplit(url.strip())
    path = parts.path
    if path.endswith("/"):
        path = path[:-1]
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def same_domain(url: str, domain: str) -> bool:
    """Exact hostname match; subdomains do not count."""
    try:
        return (urlsplit(url).hostname or "") == domain.lower()
    except ValueError:
        return False


def _is_skipped(href: str) -> bool:
    return href.lower().startswith(_SKIP_PREFIXES)


def _is_binary(url: str) -> bool:
    return urlsplit(url).path.lower().endswith(_BINARY_EXTENSIONS)


def accept_url(url: str, domain: str) -> str | None:
    """
    Normalized form of an absolute ``url`` if it is worth crawling, else ``None``.

    Crawlable means an http(s) URL on exactly ``domain`` that does not point
    at a binary file. Unparseable URLs are rejected rather than raised.
    """
    try:
        scheme = urlsplit(url.strip()).scheme.lower()
        if not domain or scheme not in _CRAWLABLE_SCHEMES or not same_domain(url.strip(), domain):
            return None
        if _is_binary(url):
            return None
        return normalize_url(url) or None
    except ValueError:
        return None


def iter_links(markup: str, base_url: str, base_domain: str | None = None) -> Iterator[tuple[str, str]]:
    """
    Yield ``(normalized, absolute)`` for every crawlable href in ``markup``.

    ``absolute`` is the href resolved against ``base_url`` before
    normalization; relative links on that page must resolve against it.
    """
    domain = base_domain or urlsplit(base_url).hostname or ""

    for match in HREF_PATTERN.finditer(markup):
        href = match.group(1).strip()
        if not href or _is_skipped(href):
            continue
        try:
            absolute = urljoin(base_url, href)
        except ValueError:
            continue
        normalized = accept_url(absolute, domain)
        if normalized:
            yield normalized, absolute


def extract_links(markup: str, base_url: str, base_domain: str | None = None) -> set[str]:
    """
    Return the normalized, same-domain, crawlable links found in ``markup``.

    Relative hrefs are resolved against ``base_url``. Only links whose host
    equals ``base_domain`` (the host of ``base_url`` when omitted) are kept.
    Malformed hrefs are dropped silently.
    """
    return {normalized for normalized, _ in iter_links(markup, base_url, base_domain)}
