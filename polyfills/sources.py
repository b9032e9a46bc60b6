"""Resolve web-features ids to MDN documentation slugs."""

from __future__ import annotations

from collections.abc import Mapping
import logging
import re
from typing import Any

from .model import CatalogFeature

LOGGER = logging.getLogger(__name__)

_MDN_DOCS_PREFIX_RE = re.compile(r"^https://developer\.mozilla\.org/(?:en-US/)?docs/")


def mdn_slug_from_url(url: str) -> str:
    """Strip the MDN docs root from a documentation URL."""
    return _MDN_DOCS_PREFIX_RE.sub("", url)


def lookup_compat_mdn_url(compat_data: Mapping[str, Any], compat_key: str) -> str | None:
    """Walk a dotted BCD key and return the ``__compat.mdn_url`` of its node."""
    node: Any = compat_data
    for part in compat_key.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
        if not node:
            return None

    compat = node.get("__compat") if isinstance(node, Mapping) else None
    if not isinstance(compat, Mapping):
        return None
    url = compat.get("mdn_url")
    return url if isinstance(url, str) and url else None


class SlugResolver:
    """Map feature ids to MDN slugs.

    The curated docs mapping wins when it has an entry for the feature, even
    an empty one.
    Otherwise the first compat key of the feature is looked up in BCD.
    """

    def __init__(
        self,
        docs_mapping: Mapping[str, list[dict[str, Any]]],
        catalog: Mapping[str, CatalogFeature],
        compat_data: Mapping[str, Any],
    ) -> None:
        self._docs_mapping = docs_mapping
        self._catalog = catalog
        self._compat_data = compat_data

    def slugs_for(self, feature_id: str) -> list[str]:
        if feature_id in self._docs_mapping:
            docs = self._docs_mapping[feature_id]
            return [doc["slug"] for doc in docs if isinstance(doc.get("slug"), str)]

        slug = self._compat_slug(feature_id)
        return [slug] if slug else []

    def _compat_slug(self, feature_id: str) -> str | None:
        feature = self._catalog.get(feature_id)
        if feature is None or not feature.compat_features:
            return None
        url = lookup_compat_mdn_url(self._compat_data, feature.compat_features[0])
        if url is None:
            LOGGER.debug("No MDN url in BCD for %s", feature_id)
            return None
        return mdn_slug_from_url(url)
