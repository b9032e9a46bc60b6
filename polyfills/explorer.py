"""Static HTML explorer for features with known fallbacks."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from html import escape
import logging
from pathlib import Path

from .constants import BASELINE_BADGES, BASELINE_SORT_SENTINEL
from .exceptions import CatalogError
from .model import CatalogFeature, Fallback, FeatureMapping, NpmStat

LOGGER = logging.getLogger(__name__)

_STYLE = """
body { font-family: system-ui, sans-serif; margin: 2rem auto; max-width: 60rem; color: #1b1b1b; }
.feature-card { border: 1px solid #ddd; border-radius: 8px; padding: 1rem; margin: 1rem 0; }
.feature-header { display: flex; gap: .75rem; align-items: baseline; flex-wrap: wrap; }
.badge { font-size: .8rem; padding: .1rem .5rem; border-radius: 999px; }
.badge-widely { background: #d4f4dd; } .badge-newly { background: #dbeafe; }
.badge-limited { background: #fde2e1; }
.polyfill-badge { font-size: .7rem; border: 1px solid #999; border-radius: 4px; padding: 0 .3rem; }
.polyfill-meta { color: #555; font-size: .85rem; }
.feature-date { color: #555; font-size: .85rem; }
"""

_SCRIPT = """
document.getElementById("baseline-filter").addEventListener("change", (event) => {
  const value = event.target.value;
  document.querySelectorAll(".feature-card").forEach((card) => {
    card.hidden = value !== "all" && card.dataset.baseline !== value;
  });
});
"""


def _baseline_key(feature: CatalogFeature) -> str:
    if feature.baseline is None:
        raise CatalogError(f"Feature {feature.feature_id} has no baseline status")
    return "false" if feature.baseline is False else feature.baseline


def _sort_date(feature: CatalogFeature) -> str:
    return feature.baseline_high_date or feature.baseline_low_date or BASELINE_SORT_SENTINEL


def format_baseline_date(value: str | None) -> str | None:
    """Format an ISO date as ``March 14, 2023``; unparseable values pass through."""
    if not value:
        return None
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def _fallback_html(fallback: Fallback, npm_stats: Mapping[str, NpmStat]) -> str:
    badges: list[str] = []
    meta: list[str] = []
    if fallback.npm:
        badges.append('<span class="polyfill-badge badge-npm">npm</span>')
        meta.append(f"Package: <code>{escape(fallback.npm)}</code>")
        stat = npm_stats.get(fallback.npm)
        if stat is not None and stat.downloads is not None:
            meta.append(f"{stat.downloads:,} downloads/week")
    repository = fallback.repository or fallback.github
    if repository:
        badges.append('<span class="polyfill-badge badge-github">GitHub</span>')
        meta.append(f"Repo: <code>{escape(repository)}</code>")

    label = fallback.description or fallback.url
    meta_html = f'<div class="polyfill-meta">{" · ".join(meta)}</div>' if meta else ""
    return (
        '<li class="polyfill-item">'
        f'<a href="{escape(fallback.url)}" target="_blank" rel="noopener noreferrer">'
        f"{escape(label)}</a> {' '.join(badges)}{meta_html}</li>"
    )


def _feature_html(
    feature: CatalogFeature, fallbacks: list[Fallback], npm_stats: Mapping[str, NpmStat]
) -> str:
    baseline = _baseline_key(feature)
    badge_class, badge_text = BASELINE_BADGES[baseline]
    since = format_baseline_date(feature.baseline_low_date)
    since_html = (
        f'<span class="feature-date">Baseline since {escape(since)}</span>' if since else ""
    )
    items = "\n".join(_fallback_html(fallback, npm_stats) for fallback in fallbacks)
    return (
        f'<section class="feature-card" id="{escape(feature.feature_id)}" '
        f'data-baseline="{baseline}">\n'
        '<div class="feature-header">'
        f"<h2>{escape(feature.name)}</h2>"
        f'<span class="badge {badge_class}">{badge_text}</span>{since_html}'
        f"<code>{escape(feature.feature_id)}</code></div>\n"
        f'<ul class="polyfill-list">\n{items}\n</ul>\n</section>'
    )


def build_explorer_html(
    mapping: FeatureMapping,
    catalog: Mapping[str, CatalogFeature],
    npm_stats: Mapping[str, NpmStat],
    generated_at: datetime,
) -> str:
    """Render the explorer page, oldest Baseline features first."""
    features: list[CatalogFeature] = []
    for feature_id in mapping:
        feature = catalog.get(feature_id)
        if feature is None:
            LOGGER.warning("Skipping %s: not in the feature catalog", feature_id)
            continue
        features.append(feature)
    features.sort(key=lambda feature: (_sort_date(feature), feature.feature_id))

    cards = "\n".join(
        _feature_html(feature, mapping[feature.feature_id], npm_stats) for feature in features
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Polyfill Explorer</title>
<style>{_STYLE}</style>
</head>
<body>
<h1>Polyfill Explorer</h1>
<p><span id="feature-count">{len(features)}</span> features with polyfills.
Generated {escape(generated_at.strftime("%Y-%m-%d %H:%M UTC"))}.</p>
<label for="baseline-filter">Filter by Baseline status:</label>
<select id="baseline-filter">
<option value="all">All</option>
<option value="high">Widely available</option>
<option value="low">Newly available</option>
<option value="false">Limited availability</option>
</select>
<main>
{cards}
</main>
<script>{_SCRIPT}</script>
</body>
</html>
"""


def write_explorer(path: Path, html: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    LOGGER.info("Wrote explorer to %s", path)
