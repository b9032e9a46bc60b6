"""Loading of the web-features catalog and browser-compat-data."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .exceptions import ContentError
from .http import fetch_json
from .model import BaselineStatus, CatalogFeature
from .util.jsonio import read_json

LOGGER = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def load_json_source(source: str) -> Any:
    """Load JSON from a URL or a local file path."""
    if _is_url(source):
        LOGGER.info("Fetching %s", source)
        return fetch_json(source)
    return read_json(Path(source))


def _clean_date(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lstrip("≤").strip()
    return cleaned or None


def _parse_baseline(status: dict[str, Any]) -> BaselineStatus | None:
    baseline = status.get("baseline")
    if baseline in ("high", "low"):
        return baseline
    if baseline is False:
        return False
    return None


def parse_catalog(payload: Any, source: str = "web-features") -> dict[str, CatalogFeature]:
    """Parse web-features ``data.json`` into catalog entries.

    Entries without a ``status`` block (moved or split features) are skipped.
    Catalog order is preserved.
    """
    if not isinstance(payload, dict):
        raise ContentError(source, detail="expected a JSON object")
    features = payload.get("features", payload)
    if not isinstance(features, dict):
        raise ContentError(source, detail="'features' is not an object")

    catalog: dict[str, CatalogFeature] = {}
    for feature_id, data in features.items():
        if not isinstance(data, dict):
            continue
        status = data.get("status")
        if not isinstance(status, dict):
            continue
        compat = data.get("compat_features")
        compat_features = (
            tuple(key for key in compat if isinstance(key, str)) if isinstance(compat, list) else ()
        )
        name = data.get("name")
        catalog[feature_id] = CatalogFeature(
            feature_id=feature_id,
            name=name if isinstance(name, str) and name else feature_id,
            baseline=_parse_baseline(status),
            baseline_low_date=_clean_date(status.get("baseline_low_date")),
            baseline_high_date=_clean_date(status.get("baseline_high_date")),
            compat_features=compat_features,
        )
    return catalog


def load_catalog(source: str) -> dict[str, CatalogFeature]:
    catalog = parse_catalog(load_json_source(source), source)
    LOGGER.info("Loaded %d features from catalog", len(catalog))
    return catalog


def load_compat_data(source: str) -> dict[str, Any]:
    payload = load_json_source(source)
    if not isinstance(payload, dict):
        raise ContentError(source, detail="expected a JSON object")
    return payload
