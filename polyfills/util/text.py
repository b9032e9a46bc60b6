"""Text utility helpers."""

from __future__ import annotations

import re

from ..constants import SLUG_ESCAPES

_WHITESPACE_RE = re.compile(r"\s+")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BULLET_RE = re.compile(r"^[-*]\s+")


def normalize_whitespace(value: str) -> str:
    """Collapse repeated whitespace and trim ends."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def strip_markdown_links(value: str) -> str:
    """Replace ``[text](url)`` with ``text``."""
    return _MARKDOWN_LINK_RE.sub(r"\1", value)


def strip_bullet(value: str) -> str:
    return _BULLET_RE.sub("", value, count=1)


def clean_list_item(value: str) -> str:
    """Turn a markdown list item into a single readable line."""
    return normalize_whitespace(strip_markdown_links(strip_bullet(value.strip())))


def slug_to_path(slug: str) -> str:
    """Map an MDN slug onto the directory layout of the content repo.

    >>> slug_to_path("Web/JavaScript/Reference/Global_Objects/Set::difference")
    'web/javascript/reference/global_objects/set_doublecolon_difference'
    """
    path = slug.lower()
    for token, escaped in SLUG_ESCAPES:
        path = path.replace(token, escaped)
    return path
