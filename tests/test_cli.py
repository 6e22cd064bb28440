"""Unit tests for the playbill CLI — version, config show, evidence, install."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest
from typer.testing import CliRunner

from playbill import __version__
from playbill.cli.app import app
from playbill.config import API_ENV_VARS, WEB_ENV_VARS

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """No stray config file or environment overrides leak into CLI runs."""
    for key in {*WEB_ENV_VARS.values(), *API_ENV_VARS.values(), "PLAYBILL_CONFIG", "CURRENT_BROWSER"}:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def _write_manifest(base: Path, scenario: str, artifacts: list[dict]) -> Path:
    manifest_dir = base / "manifest"
    manifest_dir.mkdir(parents=True, exist_ok=True)
    path = manifest_dir / f"{scenario}_20260101_120000_000.json"
    path.write_text(json.dumps({"scenario": scenario, "browser": "chromium", "artifacts": artifacts}), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# 1. Global options
# ---------------------------------------------------------------------------

class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"playbill v{__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "evidence" in result.output
        assert "install" in result.output


# ---------------------------------------------------------------------------
# 2. config show
# ---------------------------------------------------------------------------

class TestConfigShow:
    def test_masks_bearer_token(self, tmp_path: Path, sample_config_yaml: str):
        path = tmp_path / "playbill.yaml"
        path.write_text(sample_config_yaml, encoding="utf-8")

        result = runner.invoke(app, ["config", "show", "--config", str(path)])

        assert result.exit_code == 0, result.output
        assert "sk-test-0123456789xyz" not in result.output
        assert "sk-test...xyz" in result.output
        assert "firefox" in result.output

    def test_defaults_without_file(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "chromium" in result.output
        assert "default" in result.output

    def test_environment_source_reported(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BROWSER", "webkit")
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "webkit" in result.output
        assert "BROWSER" in result.output

    def test_unparsable_env_value_not_reported_as_source(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("EXECUTION_TIMEOUT_MS", "soon")
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "30000" in result.output
        assert "EXECUTION_TIMEOUT_MS" not in result.output

    def test_missing_file_is_config_error(self, tmp_path: Path):
        result = runner.invoke(app, ["config", "show", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2
        assert "Config Error" in result.output

    def test_bad_timeout_shows_config_error_panel(self, tmp_path: Path):
        path = tmp_path / "playbill.yaml"
        path.write_text("web:\n  execution_timeout_ms: soon\n", encoding="utf-8")
        result = runner.invoke(app, ["config", "show", "--config", str(path)])
        assert result.exit_code == 2
        assert "Config Error" in result.output

    def test_non_mapping_section_is_config_error(self, tmp_path: Path):
        path = tmp_path / "playbill.yaml"
        path.write_text("web: [1, 2]\n", encoding="utf-8")
        result = runner.invoke(app, ["config", "show", "--config", str(path)])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# 3. evidence
# ---------------------------------------------------------------------------

class TestEvidence:
    def test_missing_directory_is_not_an_error(self, tmp_path: Path):
        result = runner.invoke(app, ["evidence", "--base", str(tmp_path / "evidence")])
        assert result.exit_code == 0
        assert "No Evidence" in result.output

    def test_unknown_category(self, tmp_path: Path):
        result = runner.invoke(app, ["evidence", "--base", str(tmp_path), "--category", "logs"])
        assert result.exit_code == 2

    def test_reads_manifests(self, tmp_path: Path):
        base = tmp_path / "evidence"
        shot = base / "screenshots" / "Login" / "chromium" / "step_01_after_20260101_120000_000.png"
        _write_manifest(
            base,
            "Login",
            [{"path": str(shot), "kind": "screenshot", "scenario": "Login", "step": "step_01_after"}],
        )

        result = runner.invoke(app, ["evidence", "--base", str(base), "--json"])

        assert result.exit_code == 0, result.output
        artifacts = json.loads(result.output)
        assert len(artifacts) == 1
        assert artifacts[0]["category"] == "screenshots"
        assert artifacts[0]["kind"] == "screenshot"

    def test_scans_when_no_manifest(self, tmp_path: Path):
        base = tmp_path / "evidence"
        api_dir = base / "api" / "Health" / "chromium"
        api_dir.mkdir(parents=True)
        (api_dir / "get_01_request_20260101_120000_000.txt").write_text("GET /health", encoding="utf-8")
        (api_dir / "get_01_response_20260101_120000_000.json").write_text("{}", encoding="utf-8")
        errors_dir = base / "errors" / "Login" / "chromium"
        errors_dir.mkdir(parents=True)
        (errors_dir / "failure_20260101_120000_000.txt").write_text("boom", encoding="utf-8")

        result = runner.invoke(app, ["evidence", "--base", str(base), "--json", "--category", "api"])

        assert result.exit_code == 0, result.output
        artifacts = json.loads(result.output)
        assert sorted(a["kind"] for a in artifacts) == ["request_log", "response_log"]
        assert {a["scenario"] for a in artifacts} == {"Health"}

    def test_table_output(self, tmp_path: Path):
        base = tmp_path / "evidence"
        shots = base / "screenshots" / "Login" / "chromium"
        shots.mkdir(parents=True)
        (shots / "step_01_after_20260101_120000_000.png").write_bytes(b"png")

        result = runner.invoke(app, ["evidence", "--base", str(base)])

        assert result.exit_code == 0, result.output
        assert "Evidence (scan)" in result.output
        assert "1 artifact(s)" in result.output


# ---------------------------------------------------------------------------
# 4. install
# ---------------------------------------------------------------------------

class TestInstall:
    def test_unknown_browser(self):
        result = runner.invoke(app, ["install", "--browsers", "chromium,netscape"])
        assert result.exit_code == 2
        assert "netscape" in result.output

    def test_runs_playwright_install(self, monkeypatch: pytest.MonkeyPatch):
        calls: list[list[str]] = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        result = runner.invoke(app, ["install", "--browsers", "Firefox, webkit", "--with-deps", "--ci"])

        assert result.exit_code == 0, result.output
        assert calls[0][-4:] == ["install", "--with-deps", "firefox", "webkit"]

    def test_defaults_to_configured_browsers(self, monkeypatch: pytest.MonkeyPatch):
        calls: list[list[str]] = []
        monkeypatch.setenv("BROWSERS", "webkit,firefox")
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd, **kwargs: calls.append(cmd) or subprocess.CompletedProcess(cmd, 0, stdout="", stderr=""),
        )

        result = runner.invoke(app, ["install", "--ci"])

        assert result.exit_code == 0, result.output
        assert calls[0][-2:] == ["webkit", "firefox"]

    def test_failed_install_exit_code(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 1, stdout="", stderr="download failed"),
        )
        result = runner.invoke(app, ["install", "--browsers", "chromium", "--ci"])
        assert result.exit_code == 3
        assert "download failed" in result.output
