"""Constants used across pypolyfills."""

from __future__ import annotations

from typing import Final

MDN_HOST: Final[str] = "developer.mozilla.org"
MDN_REPO_URL: Final[str] = "https://github.com/mdn/content.git"
MDN_DOCS_MAPPING_URL: Final[str] = (
    "https://raw.githubusercontent.com/web-platform-dx/web-features-mappings/"
    "refs/heads/main/mappings/mdn-docs.json"
)
WEB_FEATURES_URL: Final[str] = "https://unpkg.com/web-features/data.json"
BCD_URL: Final[str] = "https://unpkg.com/@mdn/browser-compat-data/data.json"
NPM_DOWNLOADS_URL: Final[str] = "https://api.npmjs.org/downloads/point/last-week"

DEFAULT_CONTENT_DIR: Final[str] = "mdn-content-temp"
DEFAULT_MAPPINGS_PATH: Final[str] = "mappings/polyfills.json"
DEFAULT_OVERRIDES_PATH: Final[str] = "mappings/polyfills-overrides.json"
DEFAULT_NPM_STATS_PATH: Final[str] = "mappings/npm-stats.json"
DEFAULT_EXPLORER_PATH: Final[str] = "polyfill-explorer.html"

SEE_ALSO_HEADING: Final[str] = "See also"
MDN_FILES_SUBDIR: Final[tuple[str, ...]] = ("files", "en-us")
MDN_INDEX_FILE: Final[str] = "index.md"

# Longest token first so "::" is never escaped as two single colons.
SLUG_ESCAPES: Final[tuple[tuple[str, str], ...]] = (
    ("::", "_doublecolon_"),
    (":", "_colon_"),
    ("*", "_star_"),
)

FALLBACK_TYPE_POLYFILL: Final[str] = "polyfill"

PROGRESS_EVERY: Final[int] = 50

NPM_DELAY_SECONDS: Final[float] = 0.75
NPM_MAX_RETRIES: Final[int] = 2
NPM_STATS_MAX_AGE_DAYS: Final[int] = 7

BASELINE_SORT_SENTINEL: Final[str] = "9999-12-31"

BASELINE_BADGES: Final[dict[str, tuple[str, str]]] = {
    "high": ("badge-widely", "Widely available"),
    "low": ("badge-newly", "Newly available"),
    "false": ("badge-limited", "Limited availability"),
}

DEBUG_ENV_VAR: Final[str] = "POLYFILLS_DEBUG"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0
CLONE_TIMEOUT_SECONDS: Final[float] = 1800.0
