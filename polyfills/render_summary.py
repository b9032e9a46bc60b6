"""Terminal summaries printed at the end of a run."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .model import FeatureMapping, MergeReport, NpmStat


def _override_lines(report: MergeReport) -> list[Text]:
    lines: list[Text] = []
    for label, feature_ids in (
        ("Excluded", report.excluded),
        ("Replaced", report.replaced),
        ("Augmented", report.augmented),
        ("Added", report.added),
    ):
        if feature_ids:
            lines.append(Text(f"  {label}: {', '.join(feature_ids)}"))
    return lines


def render_mappings_summary(mapping: FeatureMapping, report: MergeReport, output: Path) -> Group:
    fallback_count = sum(len(fallbacks) for fallbacks in mapping.values())
    lines: list[Text] = [
        Text(f"{len(mapping)} features, {fallback_count} fallbacks", style="bold"),
    ]
    if report.total:
        lines.append(Text(""))
        lines.append(Text(f"Overrides applied: {report.total}", style="bold"))
        lines.extend(_override_lines(report))
    lines.append(Text(""))
    lines.append(Text(f"Output: {output}", style="dim"))
    return Group(Panel(Group(*lines), border_style="green", title="Polyfill mappings"))


def render_stats_summary(stats: Mapping[str, NpmStat], output: Path) -> Group:
    unknown = sorted(name for name, stat in stats.items() if stat.downloads is None)
    lines: list[Text] = [Text(f"{len(stats)} packages", style="bold")]
    if unknown:
        lines.append(Text(f"Unknown downloads: {', '.join(unknown)}", style="yellow"))
    lines.append(Text(""))
    lines.append(Text(f"Output: {output}", style="dim"))
    return Group(Panel(Group(*lines), border_style="blue", title="npm stats"))
