"""Weekly npm download statistics for packages referenced by the mappings."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone
import logging
from pathlib import Path
import time
from typing import Any

from .constants import NPM_DELAY_SECONDS, NPM_MAX_RETRIES, NPM_STATS_MAX_AGE_DAYS
from .exceptions import PolyfillsError
from .http import get_response, npm_downloads_url
from .model import FeatureMapping, NpmStat
from .util.jsonio import load_mapping, read_json, write_json

LOGGER = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Sleep = Callable[[float], None]
FetchDownloads = Callable[[str], int | None]


def extract_npm_packages(mapping: FeatureMapping) -> list[str]:
    """Return the sorted unique npm package names used by any fallback."""
    return sorted(
        {fallback.npm for fallbacks in mapping.values() for fallback in fallbacks if fallback.npm}
    )


def _parse_timestamp(value: object) -> datetime:
    if not isinstance(value, str):
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_stats(payload: object) -> dict[str, NpmStat]:
    """Parse a stats document.

    Bare numbers (the older ``{"pkg": 123}`` layout) are accepted but carry
    no timestamp, so they are always considered stale.
    """
    if not isinstance(payload, dict):
        return {}
    stats: dict[str, NpmStat] = {}
    for name, entry in payload.items():
        if isinstance(entry, bool):
            continue
        if isinstance(entry, int):
            stats[name] = NpmStat(downloads=entry, last_modified=_EPOCH)
        elif isinstance(entry, dict):
            downloads = entry.get("downloads")
            stats[name] = NpmStat(
                downloads=downloads if isinstance(downloads, int) else None,
                last_modified=_parse_timestamp(entry.get("lastModified")),
            )
    return stats


def load_stats(path: Path) -> dict[str, NpmStat]:
    if not path.exists():
        LOGGER.info("No npm stats found at %s", path)
        return {}
    return parse_stats(read_json(path))


def stats_to_json(stats: Mapping[str, NpmStat]) -> dict[str, dict[str, Any]]:
    return {
        name: {
            "downloads": stats[name].downloads,
            "lastModified": stats[name].last_modified.isoformat(),
        }
        for name in sorted(stats)
    }


def is_stale(stat: NpmStat, now: datetime, max_age: timedelta) -> bool:
    return now - stat.last_modified > max_age


def fetch_package_downloads(package_name: str, sleep: Sleep | None = None) -> int | None:
    """Fetch last-week downloads for one package.

    Rate-limited responses are retried with a growing delay. Every other
    failure is logged and reported as ``None``.
    """
    sleep = sleep or time.sleep
    url = npm_downloads_url(package_name)
    for attempt in range(NPM_MAX_RETRIES + 1):
        try:
            response = get_response(url)
        except PolyfillsError as exc:
            LOGGER.warning("Error fetching stats for %s: %s", package_name, exc)
            return None

        if response.status_code == 404:
            LOGGER.warning("Package not found: %s", package_name)
            return None

        if response.status_code == 429 and attempt < NPM_MAX_RETRIES:
            wait = NPM_DELAY_SECONDS * (attempt + 2)
            LOGGER.info(
                "Rate limited on %s, waiting %.2fs before retry %d/%d",
                package_name,
                wait,
                attempt + 1,
                NPM_MAX_RETRIES,
            )
            sleep(wait)
            continue

        if not response.is_success:
            LOGGER.warning(
                "Failed to fetch stats for %s: HTTP %d", package_name, response.status_code
            )
            return None

        try:
            downloads = response.json().get("downloads")
        except (ValueError, AttributeError):
            downloads = None
        if not isinstance(downloads, int) or isinstance(downloads, bool):
            LOGGER.warning("Unexpected stats payload for %s", package_name)
            return None
        return downloads

    return None


def update_stats(
    packages: Iterable[str],
    existing: Mapping[str, NpmStat],
    *,
    force: bool = False,
    now: datetime | None = None,
    max_age: timedelta = timedelta(days=NPM_STATS_MAX_AGE_DAYS),
    fetch: FetchDownloads | None = None,
    sleep: Sleep | None = None,
) -> dict[str, NpmStat]:
    """Refresh stale or missing packages; drop packages no longer referenced."""
    now = now or datetime.now(timezone.utc)
    sleep = sleep or time.sleep
    fetch = fetch or (lambda name: fetch_package_downloads(name, sleep=sleep))

    wanted = sorted(set(packages))
    to_fetch = [
        name
        for name in wanted
        if force or name not in existing or is_stale(existing[name], now, max_age)
    ]
    LOGGER.info(
        "Fetching stats for %d of %d npm packages%s",
        len(to_fetch),
        len(wanted),
        " (forced)" if force else "",
    )

    stats = {name: existing[name] for name in wanted if name in existing}
    for index, name in enumerate(to_fetch, start=1):
        downloads = fetch(name)
        stats[name] = NpmStat(downloads=downloads, last_modified=now)
        if downloads is not None:
            LOGGER.info("%s: %s downloads/week", name, f"{downloads:,}")
        if index % 10 == 0:
            LOGGER.info("Progress: %d/%d", index, len(to_fetch))
        if index < len(to_fetch):
            sleep(NPM_DELAY_SECONDS)

    return {name: stats[name] for name in sorted(stats)}


def generate_npm_stats(
    mappings_path: Path,
    output_path: Path,
    *,
    force: bool = False,
    max_age: timedelta = timedelta(days=NPM_STATS_MAX_AGE_DAYS),
) -> dict[str, NpmStat]:
    mapping = load_mapping(mappings_path)
    packages = extract_npm_packages(mapping)
    LOGGER.info("Found %d unique npm packages", len(packages))

    stats = update_stats(packages, load_stats(output_path), force=force, max_age=max_age)
    write_json(output_path, stats_to_json(stats))
    LOGGER.info("Generated npm stats for %d packages -> %s", len(stats), output_path)
    return stats
