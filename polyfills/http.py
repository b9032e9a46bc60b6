"""HTTP client layer for pypolyfills."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
import json
from typing import Any
from urllib.parse import quote

import httpx

from ._version import __version__
from .constants import DEFAULT_TIMEOUT_SECONDS, MDN_DOCS_MAPPING_URL, NPM_DOWNLOADS_URL
from .exceptions import ContentError, HttpStatusError, NetworkError, RequestTimeoutError

_SHARED_CLIENT: ContextVar[httpx.Client | None] = ContextVar(
    "pypolyfills_shared_client", default=None
)


def _build_headers() -> dict[str, str]:
    return {
        "User-Agent": f"pypolyfills/{__version__}",
        "Accept": "application/json",
    }


@contextmanager
def use_shared_client(
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Iterator[httpx.Client]:
    """Provide a reusable HTTP client for all fetches within a CLI run."""
    with httpx.Client(timeout=timeout, follow_redirects=True, headers=_build_headers()) as client:
        token = _SHARED_CLIENT.set(client)
        try:
            yield client
        finally:
            _SHARED_CLIENT.reset(token)


def get_response(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> httpx.Response:
    """GET a URL and return the response regardless of its status code.

    Connection errors are retried once. Timeouts and other transport
    failures are translated into application errors.
    """
    shared_client = _SHARED_CLIENT.get()
    retry_once = True
    while True:
        try:
            if shared_client is None or timeout != DEFAULT_TIMEOUT_SECONDS:
                with httpx.Client(
                    timeout=timeout, follow_redirects=True, headers=_build_headers()
                ) as client:
                    return client.get(url)
            return shared_client.get(url)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(url) from exc
        except httpx.ConnectError as exc:
            if retry_once:
                retry_once = False
                continue
            raise NetworkError(url, cause=exc.__class__.__name__) from exc
        except httpx.RequestError as exc:
            raise NetworkError(url, cause=exc.__class__.__name__) from exc


def fetch_text(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """Fetch a document body, failing on any non-success status."""
    response = get_response(url, timeout=timeout)
    if not response.is_success:
        raise HttpStatusError(response.status_code, str(response.url))

    body = response.text
    if not body.strip():
        raise ContentError(str(response.url), detail="empty body")
    return body


def parse_json_payload(raw: str, source: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ContentError(source, detail=exc.msg) from exc


def fetch_json(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Any:
    return parse_json_payload(fetch_text(url, timeout=timeout), url)


def fetch_mdn_docs_mapping(url: str = MDN_DOCS_MAPPING_URL) -> dict[str, list[dict[str, Any]]]:
    """Fetch the curated feature id -> MDN docs mapping."""
    payload = fetch_json(url)
    if not isinstance(payload, dict):
        raise ContentError(url, detail="expected a JSON object")

    mapping: dict[str, list[dict[str, Any]]] = {}
    for feature_id, docs in payload.items():
        if not isinstance(docs, list):
            continue
        mapping[feature_id] = [doc for doc in docs if isinstance(doc, dict)]
    return mapping


def npm_downloads_url(package_name: str) -> str:
    # Scoped names such as @scope/pkg must be encoded as a single path segment.
    return f"{NPM_DOWNLOADS_URL}/{quote(package_name, safe='')}"
