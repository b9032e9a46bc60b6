"""Polyfill link extraction from MDN markdown sources."""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging
from pathlib import Path
import re
from urllib.parse import urlsplit

from .classify import extract_npm_package
from .constants import MDN_FILES_SUBDIR, MDN_HOST, MDN_INDEX_FILE, SEE_ALSO_HEADING
from .model import RawLink
from .util.text import clean_list_item, slug_to_path

LOGGER = logging.getLogger(__name__)

PolyfillRule = Callable[[str, str], bool]
"""Decide whether ``(url, list_item_text)`` points at a polyfill."""

_SECTION_RE = re.compile(
    rf"## {re.escape(SEE_ALSO_HEADING)}\s*\n(.*?)(?:\n## |\Z)",
    re.IGNORECASE | re.DOTALL,
)
_ITEM_SPLIT_RE = re.compile(r"\n(?=[-*]\s)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\((https?:[^)]+)\)")


def url_mentions_polyfill(url: str, _item: str) -> bool:
    return "polyfill" in url.lower()


def item_mentions_polyfill(_url: str, item: str) -> bool:
    return "polyfill" in item.lower()


def is_npm_package_url(url: str, _item: str) -> bool:
    return extract_npm_package(url) is not None


DEFAULT_RULES: tuple[PolyfillRule, ...] = (
    url_mentions_polyfill,
    item_mentions_polyfill,
    is_npm_package_url,
)


def is_polyfill(url: str, item: str, rules: Sequence[PolyfillRule] = DEFAULT_RULES) -> bool:
    return any(rule(url, item) for rule in rules)


def _is_mdn_link(url: str) -> bool:
    host = (urlsplit(url).hostname or "").lower()
    return host == MDN_HOST or host.endswith(f".{MDN_HOST}")


def mdn_source_path(content_dir: Path, slug: str) -> Path:
    return content_dir.joinpath(*MDN_FILES_SUBDIR, slug_to_path(slug), MDN_INDEX_FILE)


def see_also_section(markdown: str) -> str | None:
    match = _SECTION_RE.search(markdown)
    return match.group(1) if match else None


def split_list_items(section: str) -> list[str]:
    """Split a section into list-item blocks; continuation lines stay attached."""
    return [item.strip() for item in _ITEM_SPLIT_RE.split(section)]


def parse_polyfill_links(
    markdown: str, rules: Sequence[PolyfillRule] = DEFAULT_RULES
) -> list[RawLink]:
    """Return candidate polyfill links from the "See also" section of a page."""
    section = see_also_section(markdown)
    if section is None:
        return []

    links: list[RawLink] = []
    for item in split_list_items(section):
        matches = list(_LINK_RE.finditer(item))
        if not matches:
            continue
        cleaned: str | None = None
        for match in matches:
            url = match.group(2)
            if _is_mdn_link(url) or not is_polyfill(url, item, rules):
                continue
            if cleaned is None:
                cleaned = clean_list_item(item)
            links.append(RawLink(url=url, text=cleaned))
    return links


def find_polyfills(
    content_dir: Path, slug: str, rules: Sequence[PolyfillRule] = DEFAULT_RULES
) -> list[RawLink]:
    """Read the MDN page for ``slug`` and extract polyfill links.

    A missing or unreadable page yields no links.
    """
    path = mdn_source_path(content_dir, slug)
    try:
        markdown = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        LOGGER.debug("No readable MDN page for %s at %s", slug, path)
        return []
    return parse_polyfill_links(markdown, rules)
