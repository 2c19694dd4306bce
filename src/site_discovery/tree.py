"""Hierarchical page tree keyed by URL path segments."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from urllib.parse import unquote, urlsplit

from site_discovery.models import PageData, PageTreeNode

logger = logging.getLogger(__name__)

_PAGE_SUFFIX = re.compile(r"\.(html?|php|aspx?)$", re.IGNORECASE)


def new_root(domain: str, origin: str) -> PageTreeNode:
    return PageTreeNode(name=domain, path=origin)


def _segments(url: str) -> list[str]:
    return [part for part in urlsplit(url).path.split("/") if part]


def insert_page(url: str, tree: PageTreeNode) -> PageTreeNode:
    """
    Insert ``url`` into ``tree`` and return the node that holds its page.

    Missing intermediate segments are created on the way down; existing
    nodes are reused, so inserting the same URL twice leaves the tree
    unchanged. Page data is only attached where none exists yet.
    """
    segments = _segments(url)
    node = tree
    for segment in segments:
        name = unquote(segment)
        child = node.child(name)
        if child is None:
            child = PageTreeNode(name=name, path=f"{node.path.rstrip('/')}/{segment}")
            node.children.append(child)
        node = child

    # Homepage lands on the root itself
    if node.page is None:
        node.page = PageData(loc=url)
    return node


def page_name(url: str) -> str:
    """Human-readable name for a page, e.g. ``/our-team.html`` -> ``Our Team``."""
    try:
        segments = _segments(url)
    except ValueError:
        return "Page"
    if not segments:
        return "Home"
    name = _PAGE_SUFFIX.sub("", unquote(segments[-1]))
    name = re.sub(r"[-_]", " ", name)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), name)


def build_tree_from_urls(urls: Iterable[str], root: PageTreeNode | None = None) -> PageTreeNode:
    """
    Build a sorted tree from an already-known URL list (e.g. a sitemap).

    Pages are added to ``root`` when given; otherwise the root is derived
    from the first URL.
    """
    urls = list(urls)
    if root is None:
        if not urls:
            return PageTreeNode(name="root", path="/")
        first = urlsplit(urls[0])
        root = new_root(first.hostname or "root", f"{first.scheme}://{first.netloc}")
    for url in urls:
        try:
            insert_page(url, root)
        except ValueError as exc:
            logger.warning("Skipping malformed URL %s: %s", url, exc)
    sort_tree(root)
    return root


def sort_tree(node: PageTreeNode) -> None:
    """Sort children alphabetically at every level, in place."""
    node.children.sort(key=lambda child: child.name.lower())
    for child in node.children:
        sort_tree(child)


def tree_stats(node: PageTreeNode, depth: int = 0) -> tuple[int, int]:
    """Return ``(total_nodes, max_depth)`` for the subtree rooted at ``node``."""
    total, deepest = 1, depth
    for child in node.children:
        child_total, child_depth = tree_stats(child, depth + 1)
        total += child_total
        deepest = max(deepest, child_depth)
    return total, deepest


def iter_pages(node: PageTreeNode) -> Iterator[PageTreeNode]:
    """Preorder walk over nodes that carry page data."""
    if node.page is not None:
        yield node
    for child in node.children:
        yield from iter_pages(child)


def render_outline(node: PageTreeNode, indent: str = "  ") -> str:
    lines: list[str] = []

    def walk(current: PageTreeNode, level: int) -> None:
        marker = "" if current.page is not None else " (section)"
        lines.append(f"{indent * level}{current.name}{marker}")
        for child in current.children:
            walk(child, level + 1)

    walk(node, 0)
    return "\n".join(lines)
