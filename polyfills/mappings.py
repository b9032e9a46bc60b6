"""Polyfill mappings pipeline: discover, merge overrides, write."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import logging
from pathlib import Path

from .catalog import load_catalog, load_compat_data
from .classify import classify_link, dedupe_links
from .constants import (
    BCD_URL,
    DEFAULT_CONTENT_DIR,
    DEFAULT_MAPPINGS_PATH,
    DEFAULT_OVERRIDES_PATH,
    MDN_DOCS_MAPPING_URL,
    MDN_REPO_URL,
    PROGRESS_EVERY,
    WEB_FEATURES_URL,
)
from .extract import DEFAULT_RULES, PolyfillRule, find_polyfills
from .http import fetch_mdn_docs_mapping
from .merge import load_overrides, merge_overrides
from .model import CatalogFeature, FeatureMapping, MergeReport, RawLink
from .snapshot import ensure_mdn_content
from .sources import SlugResolver
from .util.jsonio import write_mapping

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    output_path: Path = Path(DEFAULT_MAPPINGS_PATH)
    overrides_path: Path = Path(DEFAULT_OVERRIDES_PATH)
    content_dir: Path = Path(DEFAULT_CONTENT_DIR)
    catalog_source: str = WEB_FEATURES_URL
    compat_source: str = BCD_URL
    docs_mapping_url: str = MDN_DOCS_MAPPING_URL
    repo_url: str = MDN_REPO_URL


def discover_fallbacks(
    catalog: Mapping[str, CatalogFeature],
    resolver: SlugResolver,
    content_dir: Path,
    rules: Sequence[PolyfillRule] = DEFAULT_RULES,
) -> FeatureMapping:
    """Collect polyfill fallbacks for every catalog feature with MDN docs."""
    mapping: FeatureMapping = {}
    processed = 0

    for feature_id in catalog:
        slugs = resolver.slugs_for(feature_id)
        if not slugs:
            continue

        processed += 1
        if processed % PROGRESS_EVERY == 0:
            LOGGER.info(
                "Processed %d features, found %d with polyfills...", processed, len(mapping)
            )

        links: list[RawLink] = []
        for slug in slugs:
            links.extend(find_polyfills(content_dir, slug, rules))
        if not links:
            continue

        mapping[feature_id] = [classify_link(link) for link in dedupe_links(links)]
        LOGGER.info("%s: %d polyfill(s)", feature_id, len(mapping[feature_id]))

    return mapping


def generate_mappings(config: PipelineConfig) -> tuple[FeatureMapping, MergeReport]:
    """Run the full pipeline and write the merged mapping file."""
    LOGGER.info("Fetching MDN docs mapping...")
    docs_mapping = fetch_mdn_docs_mapping(config.docs_mapping_url)
    LOGGER.info("Loaded mapping for %d features", len(docs_mapping))

    catalog = load_catalog(config.catalog_source)
    compat_data = load_compat_data(config.compat_source)
    ensure_mdn_content(config.content_dir, config.repo_url)

    LOGGER.info("Discovering polyfills from MDN documentation...")
    resolver = SlugResolver(docs_mapping, catalog, compat_data)
    discovered = discover_fallbacks(catalog, resolver, config.content_dir)

    overrides = load_overrides(config.overrides_path)
    merged, report = merge_overrides(discovered, overrides)

    write_mapping(config.output_path, merged)
    LOGGER.info("Generated %d mappings -> %s", len(merged), config.output_path)
    return merged, report
