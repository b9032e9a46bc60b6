"""Turn raw documentation links into structured fallback records."""

from __future__ import annotations

from collections.abc import Iterable
import re

from .constants import FALLBACK_TYPE_POLYFILL
from .model import Fallback, RawLink

_NPM_PACKAGE_RE = re.compile(r"npmjs\.com/package/(@[^/?#]+/[^/?#]+|[^/?#@][^/?#]*)")
_GITHUB_REPO_RE = re.compile(r"github\.com/([^/]+/[^/?#]+)")


def extract_npm_package(url: str) -> str | None:
    """Return the npm package name, including any ``@scope/`` prefix."""
    match = _NPM_PACKAGE_RE.search(url)
    return match.group(1) if match else None


def extract_github_repo(url: str) -> str | None:
    """Return ``owner/repo`` for a GitHub URL."""
    match = _GITHUB_REPO_RE.search(url)
    if match is None:
        return None
    repo = match.group(1)
    return repo[: -len(".git")] if repo.endswith(".git") else repo


def dedupe_links(links: Iterable[RawLink]) -> list[RawLink]:
    """One link per url, in first-seen order; a repeated url takes the later link."""
    by_url: dict[str, RawLink] = {}
    for link in links:
        by_url[link.url] = link
    return list(by_url.values())


def classify_link(link: RawLink) -> Fallback:
    return Fallback(
        type=FALLBACK_TYPE_POLYFILL,
        url=link.url,
        npm=extract_npm_package(link.url),
        github=extract_github_repo(link.url),
        description=link.text or None,
    )
