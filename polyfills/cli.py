"""Console scripts for pypolyfills."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
import os
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from ._version import __version__ as _version
from .catalog import load_catalog
from .constants import (
    BCD_URL,
    DEBUG_ENV_VAR,
    DEFAULT_CONTENT_DIR,
    DEFAULT_EXPLORER_PATH,
    DEFAULT_MAPPINGS_PATH,
    DEFAULT_NPM_STATS_PATH,
    DEFAULT_OVERRIDES_PATH,
    NPM_STATS_MAX_AGE_DAYS,
    WEB_FEATURES_URL,
)
from .exceptions import PolyfillsError
from .explorer import build_explorer_html, write_explorer
from .http import use_shared_client
from .mappings import PipelineConfig, generate_mappings
from .npm_stats import generate_npm_stats, load_stats
from .render_summary import render_mappings_summary, render_stats_summary
from .util.jsonio import load_mapping

LOGGER = logging.getLogger(__name__)

_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_PATH = click.Path(path_type=Path)


def debug_enabled() -> bool:
    """Check debug mode env flag."""
    return os.environ.get(DEBUG_ENV_VAR, "").strip() == "1"


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug_enabled() else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@click.command(context_settings=_CONTEXT_SETTINGS)
@click.version_option(_version, "-v", "--version")
@click.option("--output", type=_PATH, default=DEFAULT_MAPPINGS_PATH, show_default=True)
@click.option("--overrides", type=_PATH, default=DEFAULT_OVERRIDES_PATH, show_default=True)
@click.option("--content-dir", type=_PATH, default=DEFAULT_CONTENT_DIR, show_default=True)
@click.option("--catalog", "catalog_source", default=WEB_FEATURES_URL, show_default=True,
              help="web-features data.json URL or path.")
@click.option("--bcd", "compat_source", default=BCD_URL, show_default=True,
              help="browser-compat-data data.json URL or path.")
def mappings(
    output: Path, overrides: Path, content_dir: Path, catalog_source: str, compat_source: str
) -> None:
    """
    Discover polyfills in MDN "See also" sections and merge manual overrides.
    """
    configure_logging()
    config = PipelineConfig(
        output_path=output,
        overrides_path=overrides,
        content_dir=content_dir,
        catalog_source=catalog_source,
        compat_source=compat_source,
    )
    try:
        with use_shared_client():
            result, report = generate_mappings(config)
    except PolyfillsError as exc:
        raise click.ClickException(str(exc)) from exc

    Console().print(render_mappings_summary(result, report, output))


@click.command(context_settings=_CONTEXT_SETTINGS)
@click.version_option(_version, "-v", "--version")
@click.option("-f", "--force", is_flag=True, help="Refresh every package, fresh or not.")
@click.option("--mappings", "mappings_path", type=_PATH, default=DEFAULT_MAPPINGS_PATH,
              show_default=True)
@click.option("--output", type=_PATH, default=DEFAULT_NPM_STATS_PATH, show_default=True)
@click.option("--max-age-days", type=click.IntRange(min=0), default=NPM_STATS_MAX_AGE_DAYS,
              show_default=True, help="Refresh records older than this.")
def npm_stats(force: bool, mappings_path: Path, output: Path, max_age_days: int) -> None:
    """
    Fetch weekly npm downloads for packages referenced by the mappings.
    """
    configure_logging()
    try:
        with use_shared_client():
            stats = generate_npm_stats(
                mappings_path, output, force=force, max_age=timedelta(days=max_age_days)
            )
    except PolyfillsError as exc:
        raise click.ClickException(str(exc)) from exc

    Console().print(render_stats_summary(stats, output))


@click.command(context_settings=_CONTEXT_SETTINGS)
@click.version_option(_version, "-v", "--version")
@click.option("--mappings", "mappings_path", type=_PATH, default=DEFAULT_MAPPINGS_PATH,
              show_default=True)
@click.option("--stats", "stats_path", type=_PATH, default=DEFAULT_NPM_STATS_PATH,
              show_default=True)
@click.option("--catalog", "catalog_source", default=WEB_FEATURES_URL, show_default=True,
              help="web-features data.json URL or path.")
@click.option("--output", type=_PATH, default=DEFAULT_EXPLORER_PATH, show_default=True)
def explorer(mappings_path: Path, stats_path: Path, catalog_source: str, output: Path) -> None:
    """
    Render the static polyfill explorer page.
    """
    configure_logging()
    try:
        mapping = load_mapping(mappings_path)
        if not stats_path.exists():
            LOGGER.warning("%s not found; run polyfills-npm-stats first", stats_path)
        stats = load_stats(stats_path)
        with use_shared_client():
            catalog = load_catalog(catalog_source)
        html = build_explorer_html(mapping, catalog, stats, datetime.now(timezone.utc))
    except PolyfillsError as exc:
        raise click.ClickException(str(exc)) from exc

    write_explorer(output, html)
    Console().print(f"Explorer written to {output}")
