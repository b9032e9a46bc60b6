"""JSON artifact helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..exceptions import ContentError
from ..model import Fallback, FeatureMapping

LOGGER = logging.getLogger(__name__)


def read_json(path: Path) -> Any:
    """Read a JSON document, raising ``ContentError`` when it is unreadable or malformed."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContentError(str(path), detail=exc.strerror or exc.__class__.__name__) from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ContentError(str(path), detail=exc.msg) from exc


def write_json(path: Path, payload: Any) -> None:
    """Write pretty-printed JSON, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    LOGGER.debug("Wrote %s", path)


def mapping_to_json(mapping: FeatureMapping) -> dict[str, dict[str, list[dict[str, Any]]]]:
    return {
        feature_id: {"fallbacks": [fallback.to_dict() for fallback in mapping[feature_id]]}
        for feature_id in sorted(mapping)
    }


def mapping_from_json(payload: Any, source: str) -> FeatureMapping:
    if not isinstance(payload, dict):
        raise ContentError(source, detail="expected a JSON object")

    mapping: FeatureMapping = {}
    for feature_id in sorted(payload):
        entry = payload[feature_id]
        raw_fallbacks = entry.get("fallbacks") if isinstance(entry, dict) else None
        if not isinstance(raw_fallbacks, list):
            raise ContentError(source, detail=f"'{feature_id}' has no fallbacks list")
        try:
            mapping[feature_id] = [
                Fallback.from_dict(item) for item in raw_fallbacks if isinstance(item, dict)
            ]
        except ValueError as exc:
            raise ContentError(source, detail=f"{feature_id}: {exc}") from exc
    return mapping


def load_mapping(path: Path) -> FeatureMapping:
    return mapping_from_json(read_json(path), str(path))


def write_mapping(path: Path, mapping: FeatureMapping) -> None:
    write_json(path, mapping_to_json(mapping))
