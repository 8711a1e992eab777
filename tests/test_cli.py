"""Tests for CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import RecordingCheck

from scanctl import cli
from scanctl.cli import app
from scanctl.cli_commands import shared
from scanctl.cli_commands.call_command import parse_params
from scanctl.config import CONFIG_KEYS
from scanctl.engine import build_engine
from scanctl.modules.policy import load_catalog

runner = CliRunner()


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> Path:
    """Run the CLI outside any project, with storage under a temp directory."""
    home = temp_dir / "home"
    home.mkdir()
    work = temp_dir / "work"
    work.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SCANCTL_DB_PATH", str(temp_dir / "state" / "scanctl.db"))
    monkeypatch.setenv("SCANCTL_CATALOG_PATH", str(temp_dir / "state" / "scanners.yml"))
    monkeypatch.chdir(work)
    monkeypatch.setattr(shared.console, "width", 200)
    return temp_dir


class TestCommandsExist:
    def test_all_commands_registered(self):
        names = {command.name or command.callback.__name__ for command in app.registered_commands}
        assert {"version", "scan", "scanners", "policies", "call", "config"} <= names

    def test_version(self, cli_env: Path):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "scanctl" in result.output


class TestPolicyCommands:
    def test_policies_table(self, cli_env: Path):
        result = runner.invoke(app, ["policies"])
        assert result.exit_code == 0, result.output
        assert "Injection" in result.output
        assert "Server Security" in result.output

    def test_scanners_filtered(self, cli_env: Path):
        result = runner.invoke(app, ["scanners", "--policy", "4"])
        assert result.exit_code == 0, result.output
        assert "40018" in result.output
        assert "SQL Injection" in result.output
        assert "Directory Browsing" not in result.output

    def test_scanners_unknown_policy(self, cli_env: Path):
        result = runner.invoke(app, ["scanners", "--policy", "17"])
        assert result.exit_code == 1
        assert "does_not_exist" in result.output


class TestCallCommand:
    def test_list(self, cli_env: Path):
        result = runner.invoke(app, ["call", "--list"])
        assert result.exit_code == 0, result.output
        assert "setEnabledPolicies" in result.output
        assert "excludedFromScan" in result.output

    def test_policy_action_is_saved_to_catalog(self, cli_env: Path):
        result = runner.invoke(app, ["call", "action", "disableScanners", "-p", "ids=40018"])
        assert result.exit_code == 0, result.output
        assert "OK" in result.output

        store = load_catalog(cli_env / "state" / "scanners.yml")
        assert store.require(40018).enabled is False

        result = runner.invoke(app, ["call", "view", "scanners", "-p", "policyId=4"])
        assert '"enabled": false' in result.output

    def test_exclusions_persist_between_runs(self, cli_env: Path):
        result = runner.invoke(
            app, ["call", "action", "excludeFromScan", "-p", "regex=.*logout.*"]
        )
        assert result.exit_code == 0, result.output
        result = runner.invoke(app, ["call", "view", "excludedFromScan"])
        assert ".*logout.*" in result.output

    def test_api_error_exits_nonzero(self, cli_env: Path):
        result = runner.invoke(app, ["call", "action", "removeScan", "-p", "scanId=3"])
        assert result.exit_code == 1
        assert "does_not_exist" in result.output

    def test_unknown_kind(self, cli_env: Path):
        result = runner.invoke(app, ["call", "query", "scans"])
        assert result.exit_code == 1

    def test_bad_param_pair(self, cli_env: Path):
        result = runner.invoke(app, ["call", "view", "scans", "-p", "novalue"])
        assert result.exit_code != 0

    def test_parse_params(self):
        assert parse_params(["a=1", "regex=x=y", "empty="]) == {
            "a": "1",
            "regex": "x=y",
            "empty": "",
        }


class TestScanCommand:
    def test_scan_runs_to_completion(self, cli_env: Path):
        result = runner.invoke(app, ["scan", "http://example.com/"])
        assert result.exit_code == 0, result.output
        assert "Started scan 0" in result.output
        assert "FINISHED" in result.output

    def test_scan_without_panel_still_runs_checks(
        self, cli_env: Path, monkeypatch: pytest.MonkeyPatch
    ):
        check = RecordingCheck(40018, raise_alerts=True)
        monkeypatch.setattr(
            cli, "build_engine", lambda **kwargs: build_engine(checks=[check], **kwargs)
        )
        result = runner.invoke(app, ["scan", "http://example.com/login", "--no-live"])
        assert result.exit_code == 0, result.output
        assert check.scanned == ["http://example.com/login"]
        assert "FINISHED at 100%, 1 requests, 1 alerts" in result.output

    def test_scan_rejects_relative_url(self, cli_env: Path):
        result = runner.invoke(app, ["scan", "example.com"])
        assert result.exit_code == 1
        assert "Not an absolute URL" in result.output


class TestConfigCommand:
    def test_init_and_show(self, cli_env: Path):
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0, result.output
        assert (cli_env / "home" / ".scanctl" / "config.yml").exists()

        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "SCANCTL_MAX_RESULTS_TO_LIST=100" in result.output

    def test_init_project(self, cli_env: Path):
        result = runner.invoke(app, ["config", "init", "--project"])
        assert result.exit_code == 0, result.output
        assert (cli_env / "work" / ".scanctl" / ".env").exists()

    def test_unknown_action(self, cli_env: Path):
        result = runner.invoke(app, ["config", "edit"])
        assert result.exit_code == 1
