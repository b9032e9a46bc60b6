from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
import json
from pathlib import Path

from click.testing import CliRunner
from pytest import MonkeyPatch

from polyfills import __version__, cli
from polyfills.exceptions import OverrideParseError, PolyfillsError
from polyfills.mappings import PipelineConfig
from polyfills.model import CatalogFeature, Fallback, MergeReport, NpmStat
from polyfills.util.jsonio import write_mapping


def _track_shared_client(monkeypatch: MonkeyPatch) -> dict[str, int]:
    state = {"entered": 0, "exited": 0}

    @contextmanager
    def _fake_shared_client() -> Iterator[object]:
        state["entered"] += 1
        try:
            yield object()
        finally:
            state["exited"] += 1

    monkeypatch.setattr(cli, "use_shared_client", _fake_shared_client)
    return state


def test_help_and_version() -> None:
    runner = CliRunner()
    for command in (cli.mappings, cli.npm_stats, cli.explorer):
        result = runner.invoke(command, ["-h"])
        assert result.exit_code == 0
        assert "Usage:" in result.output

        result = runner.invoke(command, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


def test_mappings_command_runs_pipeline(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    runner = CliRunner()
    state = _track_shared_client(monkeypatch)
    seen: list[PipelineConfig] = []

    def _fake_generate(config: PipelineConfig) -> tuple[dict[str, list[Fallback]], MergeReport]:
        seen.append(config)
        return {"a": [Fallback(url="https://x")]}, MergeReport(added=["a"])

    monkeypatch.setattr(cli, "generate_mappings", _fake_generate)
    output = tmp_path / "polyfills.json"

    result = runner.invoke(
        cli.mappings,
        ["--output", str(output), "--catalog", "data.json", "--content-dir", str(tmp_path)],
    )

    assert result.exit_code == 0, result.output
    assert seen[0].output_path == output
    assert seen[0].catalog_source == "data.json"
    assert seen[0].content_dir == tmp_path
    assert "1 features, 1 fallbacks" in result.output
    assert state == {"entered": 1, "exited": 1}


def test_mappings_command_reports_fatal_errors(monkeypatch: MonkeyPatch) -> None:
    runner = CliRunner()
    state = _track_shared_client(monkeypatch)

    def _fail(_config: PipelineConfig) -> None:
        raise OverrideParseError("overrides.json", "Expecting value")

    monkeypatch.setattr(cli, "generate_mappings", _fail)

    result = runner.invoke(cli.mappings, [])

    assert result.exit_code != 0
    assert "Error: Invalid overrides file overrides.json" in result.output
    assert state == {"entered": 1, "exited": 1}


def test_npm_stats_force_flag(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    runner = CliRunner()
    _track_shared_client(monkeypatch)
    calls: list[dict[str, object]] = []

    def _fake_generate(
        mappings_path: Path, output: Path, *, force: bool, max_age: timedelta
    ) -> dict[str, NpmStat]:
        calls.append({"mappings": mappings_path, "force": force, "max_age": max_age})
        return {}

    monkeypatch.setattr(cli, "generate_npm_stats", _fake_generate)

    assert runner.invoke(cli.npm_stats, ["-f"]).exit_code == 0
    assert runner.invoke(cli.npm_stats, ["--max-age-days", "3"]).exit_code == 0
    assert calls[0]["force"] is True
    assert calls[1]["force"] is False
    assert calls[1]["max_age"] == timedelta(days=3)


def test_npm_stats_missing_mappings_file_fails(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    runner = CliRunner()
    _track_shared_client(monkeypatch)

    result = runner.invoke(
        cli.npm_stats,
        ["--mappings", str(tmp_path / "missing.json"), "--output", str(tmp_path / "s.json")],
    )

    assert result.exit_code != 0
    assert "Error:" in result.output


def test_explorer_command_writes_html(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    runner = CliRunner()
    _track_shared_client(monkeypatch)
    mappings_path = tmp_path / "polyfills.json"
    write_mapping(mappings_path, {"set-methods": [Fallback(url="https://x", npm="core-js")]})
    catalog_path = tmp_path / "data.json"
    catalog_path.write_text(
        json.dumps(
            {"features": {"set-methods": {"name": "Set methods", "status": {"baseline": "low"}}}}
        ),
        encoding="utf-8",
    )
    output = tmp_path / "explorer.html"

    result = runner.invoke(
        cli.explorer,
        [
            "--mappings",
            str(mappings_path),
            "--stats",
            str(tmp_path / "missing-stats.json"),
            "--catalog",
            str(catalog_path),
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    assert 'id="set-methods"' in output.read_text(encoding="utf-8")


def test_explorer_command_reports_catalog_errors(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    runner = CliRunner()
    _track_shared_client(monkeypatch)
    mappings_path = tmp_path / "polyfills.json"
    write_mapping(mappings_path, {"x": [Fallback(url="https://x")]})

    def _fail(_source: str) -> dict[str, CatalogFeature]:
        raise PolyfillsError("catalog unavailable")

    monkeypatch.setattr(cli, "load_catalog", _fail)

    result = runner.invoke(cli.explorer, ["--mappings", str(mappings_path)])

    assert result.exit_code != 0
    assert "Error: catalog unavailable" in result.output


def test_debug_env_flag(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("POLYFILLS_DEBUG", "1")
    assert cli.debug_enabled() is True
    monkeypatch.setenv("POLYFILLS_DEBUG", "0")
    assert cli.debug_enabled() is False
