"""Manual override loading and merging."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import OverrideParseError
from .model import (
    AugmentOverride,
    ExcludeOverride,
    Fallback,
    FeatureMapping,
    MergeReport,
    Override,
    ReplaceOverride,
)

LOGGER = logging.getLogger(__name__)


def _parse_fallbacks(raw: object, feature_id: str) -> tuple[Fallback, ...]:
    if not isinstance(raw, list):
        raise ValueError(f"'{feature_id}.fallbacks' must be a list")
    fallbacks: list[Fallback] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"'{feature_id}.fallbacks[{index}]' must be an object")
        try:
            fallbacks.append(Fallback.from_dict(item))
        except ValueError as exc:
            raise ValueError(f"'{feature_id}.fallbacks[{index}]': {exc}") from exc
    return tuple(fallbacks)


def parse_override(feature_id: str, entry: Mapping[str, Any]) -> Override | None:
    """Resolve one override entry to its variant.

    ``exclude`` wins over everything else. ``replace`` only takes effect
    together with ``fallbacks``. An entry with neither yields ``None``.
    """
    if entry.get("exclude"):
        return ExcludeOverride()
    if "fallbacks" not in entry or entry["fallbacks"] is None:
        return None

    fallbacks = _parse_fallbacks(entry["fallbacks"], feature_id)
    if entry.get("replace"):
        return ReplaceOverride(fallbacks)
    return AugmentOverride(fallbacks)


def parse_overrides(payload: object, source: str) -> dict[str, Override]:
    if not isinstance(payload, dict):
        raise OverrideParseError(source, "top level must be a JSON object")

    overrides: dict[str, Override] = {}
    for feature_id, entry in payload.items():
        if feature_id.startswith("_"):
            continue
        if not isinstance(entry, dict):
            raise OverrideParseError(source, f"'{feature_id}' must be an object")
        try:
            override = parse_override(feature_id, entry)
        except ValueError as exc:
            raise OverrideParseError(source, str(exc)) from exc
        if override is not None:
            overrides[feature_id] = override
    return overrides


def load_overrides(path: Path) -> dict[str, Override]:
    """Load overrides from ``path``.

    A missing file means there are no overrides. A file that exists but
    cannot be read or parsed raises ``OverrideParseError``.
    """
    if not path.exists():
        LOGGER.info("No manual overrides found at %s", path)
        return {}

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise OverrideParseError(str(path), exc.strerror or exc.__class__.__name__) from exc
    except json.JSONDecodeError as exc:
        raise OverrideParseError(
            str(path), f"{exc.msg} (line {exc.lineno}, column {exc.colno})"
        ) from exc

    overrides = parse_overrides(payload, str(path))
    LOGGER.info("Loaded %d manual overrides", len(overrides))
    return overrides


def merge_overrides(
    mapping: Mapping[str, list[Fallback]],
    overrides: Mapping[str, Override],
) -> tuple[FeatureMapping, MergeReport]:
    """Apply overrides to auto-discovered fallbacks.

    Inputs are left untouched. Augmented fallbacks are appended without
    deduplication. The result is keyed in sorted feature-id order.
    """
    merged: FeatureMapping = {feature_id: list(items) for feature_id, items in mapping.items()}
    report = MergeReport()

    for feature_id, override in overrides.items():
        if isinstance(override, ExcludeOverride):
            merged.pop(feature_id, None)
            report.excluded.append(feature_id)
            LOGGER.info("Excluded: %s", feature_id)
        elif isinstance(override, ReplaceOverride):
            merged[feature_id] = list(override.fallbacks)
            report.replaced.append(feature_id)
            LOGGER.info("Replaced: %s (%d fallback(s))", feature_id, len(override.fallbacks))
        elif feature_id in merged:
            merged[feature_id].extend(override.fallbacks)
            report.augmented.append(feature_id)
            LOGGER.info(
                "Augmented: %s (added %d fallback(s))", feature_id, len(override.fallbacks)
            )
        else:
            merged[feature_id] = list(override.fallbacks)
            report.added.append(feature_id)
            LOGGER.info("Added: %s", feature_id)

    return {feature_id: merged[feature_id] for feature_id in sorted(merged)}, report
