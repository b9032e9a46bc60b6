"""Exception types for pypolyfills."""

from __future__ import annotations


class PolyfillsError(Exception):
    """Base exception for expected application errors."""


class NetworkError(PolyfillsError):
    """Raised when a network operation fails."""

    def __init__(self, url: str, *, cause: str | None = None) -> None:
        detail = f"Unable to connect for {url}"
        if cause:
            detail = f"{detail} ({cause})"
        super().__init__(detail)


class RequestTimeoutError(PolyfillsError):
    """Raised when a request times out."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Request timed out for {url}")


class HttpStatusError(PolyfillsError):
    """Raised when a non-success HTTP response is returned."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"Request failed with HTTP {status_code} for {url}")


class ContentError(PolyfillsError):
    """Raised when a payload is empty or not valid JSON."""

    def __init__(self, source: str, *, detail: str | None = None) -> None:
        message = f"Received invalid content from {source}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SnapshotError(PolyfillsError):
    """Raised when the documentation snapshot cannot be created."""

    def __init__(self, repo_url: str, *, cause: str | None = None) -> None:
        detail = f"Unable to clone {repo_url}"
        if cause:
            detail = f"{detail} ({cause})"
        super().__init__(detail)


class OverrideParseError(PolyfillsError):
    """Raised when the overrides file exists but cannot be understood."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid overrides file {path}: {reason}")


class CatalogError(PolyfillsError):
    """Raised when the feature catalog is missing required data."""
