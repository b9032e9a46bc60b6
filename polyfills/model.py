"""Data models for discovery, overrides, catalog and npm stats."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Union

from .constants import FALLBACK_TYPE_POLYFILL

BaselineStatus = Literal["high", "low", False]

_KNOWN_FALLBACK_KEYS = ("type", "url", "npm", "github", "repository", "description")


@dataclass(frozen=True)
class RawLink:
    url: str
    text: str


@dataclass(frozen=True)
class Fallback:
    """One external remedy (usually a polyfill) for a missing feature."""

    url: str
    type: str = FALLBACK_TYPE_POLYFILL
    npm: str | None = None
    github: str | None = None
    repository: str | None = None
    description: str | None = None
    # Not part of the hash; equality still compares it.
    extra: dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, "url": self.url}
        for key in ("npm", "github", "repository", "description"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        for key, value in self.extra.items():
            payload.setdefault(key, value)
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Fallback:
        """Build a fallback from its persisted form.

        Raises ``ValueError`` when ``url`` is missing or any known field has
        the wrong type. Unknown keys are carried through untouched.
        """
        url = data.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ValueError("fallback requires a non-empty 'url'")

        fallback_type = data.get("type", FALLBACK_TYPE_POLYFILL)
        if not isinstance(fallback_type, str) or not fallback_type:
            raise ValueError(f"fallback 'type' must be a string for {url}")

        optional: dict[str, str | None] = {}
        for key in ("npm", "github", "repository", "description"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"fallback '{key}' must be a string for {url}")
            optional[key] = value

        extra = {key: value for key, value in data.items() if key not in _KNOWN_FALLBACK_KEYS}
        return cls(url=url, type=fallback_type, extra=extra, **optional)


FeatureMapping = dict[str, list[Fallback]]


@dataclass(frozen=True)
class ExcludeOverride:
    pass


@dataclass(frozen=True)
class ReplaceOverride:
    fallbacks: tuple[Fallback, ...]


@dataclass(frozen=True)
class AugmentOverride:
    fallbacks: tuple[Fallback, ...]


Override = Union[ExcludeOverride, ReplaceOverride, AugmentOverride]


@dataclass
class MergeReport:
    excluded: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)
    augmented: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.excluded) + len(self.replaced) + len(self.augmented) + len(self.added)


@dataclass(frozen=True)
class CatalogFeature:
    feature_id: str
    name: str
    baseline: BaselineStatus | None
    baseline_low_date: str | None = None
    baseline_high_date: str | None = None
    compat_features: tuple[str, ...] = ()


@dataclass(frozen=True)
class NpmStat:
    downloads: int | None
    last_modified: datetime
