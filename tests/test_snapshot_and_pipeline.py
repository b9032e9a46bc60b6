from __future__ import annotations

import json
from pathlib import Path
import subprocess

import pytest

from polyfills import mappings as mappings_module
from polyfills import snapshot
from polyfills.exceptions import HttpStatusError, OverrideParseError, SnapshotError
from polyfills.mappings import PipelineConfig, discover_fallbacks, generate_mappings
from polyfills.model import CatalogFeature, Fallback
from polyfills.sources import SlugResolver
from polyfills.util.jsonio import load_mapping, mapping_from_json, mapping_to_json

_OBSERVER_PAGE = """## See also

- [intersection-observer](https://www.npmjs.com/package/intersection-observer)
- [Polyfill](https://github.com/w3c/IntersectionObserver/tree/main/polyfill)
"""

_OVERVIEW_PAGE = """## See also

- [intersection-observer](https://www.npmjs.com/package/intersection-observer) on npm
"""

_SET_PAGE = """## See also

- [Polyfill of `Set.prototype.difference` in `core-js`](https://github.com/zloirock/core-js#new-set-methods)
"""


def _write_page(content_dir: Path, relative: str, markdown: str) -> None:
    page = content_dir / "files" / "en-us" / relative / "index.md"
    page.parent.mkdir(parents=True, exist_ok=True)
    page.write_text(markdown, encoding="utf-8")


def _catalog() -> dict[str, CatalogFeature]:
    return {
        "set-methods": CatalogFeature(
            "set-methods",
            "Set methods",
            "low",
            compat_features=("javascript.builtins.Set.difference",),
        ),
        "intersection-observer": CatalogFeature(
            "intersection-observer", "Intersection observer", "high"
        ),
        "array-group": CatalogFeature("array-group", "Array grouping", False),
    }


_BCD = {
    "javascript": {
        "builtins": {
            "Set": {
                "difference": {
                    "__compat": {
                        "mdn_url": (
                            "https://developer.mozilla.org/docs/Web/JavaScript/Reference/"
                            "Global_Objects/Set::difference"
                        )
                    }
                }
            }
        }
    }
}

_DOCS = {
    "intersection-observer": [
        {"slug": "Web/API/Intersection_Observer_API"},
        {"slug": "Web/API/IntersectionObserver"},
    ]
}


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    root = tmp_path / "mdn-content"
    _write_page(root, "web/api/intersectionobserver", _OBSERVER_PAGE)
    _write_page(root, "web/api/intersection_observer_api", _OVERVIEW_PAGE)
    _write_page(
        root, "web/javascript/reference/global_objects/set_doublecolon_difference", _SET_PAGE
    )
    return root


def test_ensure_mdn_content_reuses_existing_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        snapshot.subprocess, "run", lambda *_a, **_k: (_ for _ in ()).throw(AssertionError)
    )
    assert snapshot.ensure_mdn_content(tmp_path) == tmp_path


def test_ensure_mdn_content_clones_when_missing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[list[str]] = []

    def _fake_run(args: list[str], **kwargs: object) -> subprocess.CompletedProcess[bytes]:
        calls.append(args)
        assert kwargs["check"] is True
        return subprocess.CompletedProcess(args, 0)

    monkeypatch.setattr(snapshot.subprocess, "run", _fake_run)
    target = tmp_path / "mdn"

    snapshot.ensure_mdn_content(target, "https://example.com/content.git")

    assert calls == [
        ["git", "clone", "--depth", "1", "https://example.com/content.git", str(target)]
    ]


@pytest.mark.parametrize(
    "error",
    [
        FileNotFoundError("git"),
        subprocess.CalledProcessError(128, ["git"]),
        subprocess.TimeoutExpired(["git"], 1.0),
    ],
)
def test_ensure_mdn_content_clone_failure_is_fatal(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, error: Exception
) -> None:
    def _fake_run(*_args: object, **_kwargs: object) -> None:
        raise error

    monkeypatch.setattr(snapshot.subprocess, "run", _fake_run)
    with pytest.raises(SnapshotError):
        snapshot.ensure_mdn_content(tmp_path / "mdn")


def test_discover_fallbacks_dedupes_across_slugs(content_dir: Path) -> None:
    resolver = SlugResolver(_DOCS, _catalog(), _BCD)

    mapping = discover_fallbacks(_catalog(), resolver, content_dir)

    assert list(mapping) == ["set-methods", "intersection-observer"]
    observer = mapping["intersection-observer"]
    assert [fallback.url for fallback in observer] == [
        "https://www.npmjs.com/package/intersection-observer",
        "https://github.com/w3c/IntersectionObserver/tree/main/polyfill",
    ]
    assert observer[0].description == "intersection-observer"
    assert observer[0].npm == "intersection-observer"
    assert observer[1].github == "w3c/IntersectionObserver"
    assert mapping["set-methods"][0].github == "zloirock/core-js"
    assert "array-group" not in mapping
    for fallbacks in mapping.values():
        urls = [fallback.url for fallback in fallbacks]
        assert len(urls) == len(set(urls))


def test_mapping_json_round_trip_is_sorted() -> None:
    payload = mapping_to_json({"b": [Fallback(url="https://b")], "a": []})
    assert list(payload) == ["a", "b"]
    assert payload["b"] == {"fallbacks": [{"type": "polyfill", "url": "https://b"}]}
    assert mapping_from_json(payload, "x") == {"a": [], "b": [Fallback(url="https://b")]}


def _patch_remote(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(mappings_module, "fetch_mdn_docs_mapping", lambda _url: _DOCS)
    monkeypatch.setattr(mappings_module, "load_catalog", lambda _src: _catalog())
    monkeypatch.setattr(mappings_module, "load_compat_data", lambda _src: _BCD)


def test_generate_mappings_end_to_end(
    tmp_path: Path, content_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _patch_remote(monkeypatch)
    overrides_path = tmp_path / "overrides.json"
    overrides_path.write_text(
        json.dumps(
            {
                "_comment": "curated",
                "set-methods": {"exclude": True},
                "intersection-observer": {
                    "fallbacks": [{"url": "https://other.example/polyfill"}]
                },
                "array-group": {"replace": True, "fallbacks": []},
            }
        ),
        encoding="utf-8",
    )
    config = PipelineConfig(
        output_path=tmp_path / "out" / "polyfills.json",
        overrides_path=overrides_path,
        content_dir=content_dir,
    )

    merged, report = generate_mappings(config)

    written = json.loads(config.output_path.read_text(encoding="utf-8"))
    assert list(written) == ["array-group", "intersection-observer"]
    assert written["array-group"] == {"fallbacks": []}
    assert [item["url"] for item in written["intersection-observer"]["fallbacks"]] == [
        "https://www.npmjs.com/package/intersection-observer",
        "https://github.com/w3c/IntersectionObserver/tree/main/polyfill",
        "https://other.example/polyfill",
    ]
    assert load_mapping(config.output_path) == merged
    assert report.excluded == ["set-methods"]
    assert config.output_path.read_text(encoding="utf-8").endswith("}\n")


def test_generate_mappings_malformed_overrides_abort(
    tmp_path: Path, content_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _patch_remote(monkeypatch)
    overrides_path = tmp_path / "overrides.json"
    overrides_path.write_text("{", encoding="utf-8")
    config = PipelineConfig(
        output_path=tmp_path / "polyfills.json",
        overrides_path=overrides_path,
        content_dir=content_dir,
    )

    with pytest.raises(OverrideParseError):
        generate_mappings(config)
    assert not config.output_path.exists()


def test_generate_mappings_remote_failure_aborts(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail(url: str) -> dict[str, list[dict[str, str]]]:
        raise HttpStatusError(503, url)

    monkeypatch.setattr(mappings_module, "fetch_mdn_docs_mapping", _fail)
    config = PipelineConfig(output_path=tmp_path / "polyfills.json")

    with pytest.raises(HttpStatusError):
        generate_mappings(config)
    assert not config.output_path.exists()
