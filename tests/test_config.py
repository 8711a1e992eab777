"""Tests for configuration management."""

from pathlib import Path

import pytest

from scanctl import config
from scanctl.modules.policy import AlertThreshold, AttackStrength


@pytest.fixture
def isolated_home(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> Path:
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    for key in config.CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
    return home


class TestLoadEnvFile:
    """Tests for load_env_file."""

    def test_load_env_file_missing_returns_empty(self, temp_dir: Path) -> None:
        assert config.load_env_file(temp_dir / ".env") == {}

    def test_load_env_file_ignores_comments_and_strips_quotes(self, temp_dir: Path) -> None:
        env_path = temp_dir / ".env"
        env_path.write_text("# comment\n\nFOO=\"bar\"\nBAZ='qux'\n")
        assert config.load_env_file(env_path) == {"FOO": "bar", "BAZ": "qux"}


class TestFindProjectDir:
    def test_finds_marker_from_subdirectory(self, project_dir: Path) -> None:
        nested = project_dir / "a" / "b"
        nested.mkdir(parents=True)
        assert config.find_project_dir(nested) == project_dir.resolve()

    def test_global_config_dir_is_not_a_project(self, isolated_home: Path) -> None:
        (isolated_home / ".scanctl").mkdir()
        assert config.find_project_dir(isolated_home) is None


class TestGetConfigPriority:
    def test_default(self, isolated_home: Path, project_dir: Path) -> None:
        assert config.get_config("SCANCTL_DEBUG", project_dir, "fallback") == "fallback"

    def test_global_over_default(self, isolated_home: Path, project_dir: Path) -> None:
        config.create_global_config()
        assert config.get_config("SCANCTL_MAX_RESULTS_TO_LIST", project_dir) == 100

    def test_project_over_global(self, isolated_home: Path, project_dir: Path) -> None:
        config.create_global_config()
        (project_dir / ".scanctl" / ".env").write_text("SCANCTL_MAX_RESULTS_TO_LIST=25\n")
        assert config.get_max_results_to_list(project_dir) == 25

    def test_env_over_project(
        self, isolated_home: Path, project_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (project_dir / ".scanctl" / ".env").write_text("SCANCTL_MAX_RESULTS_TO_LIST=25\n")
        monkeypatch.setenv("SCANCTL_MAX_RESULTS_TO_LIST", "7")
        assert config.get_max_results_to_list(project_dir) == 7


class TestTypedGetters:
    def test_max_results_invalid_falls_back(
        self, isolated_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SCANCTL_MAX_RESULTS_TO_LIST", "lots")
        assert config.get_max_results_to_list() == 100

    def test_db_path_in_project(self, isolated_home: Path, project_dir: Path) -> None:
        assert config.get_db_path(project_dir) == project_dir / ".scanctl" / "scanctl.db"

    def test_db_path_env(
        self, isolated_home: Path, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SCANCTL_DB_PATH", str(temp_dir / "custom.db"))
        assert config.get_db_path() == temp_dir / "custom.db"

    def test_catalog_path_default(self, isolated_home: Path) -> None:
        assert config.get_catalog_path() == isolated_home / ".scanctl" / "scanners.yml"

    def test_default_strength_and_threshold(
        self, isolated_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        assert config.get_default_attack_strength() is AttackStrength.MEDIUM
        monkeypatch.setenv("SCANCTL_DEFAULT_ATTACK_STRENGTH", "high")
        monkeypatch.setenv("SCANCTL_DEFAULT_ALERT_THRESHOLD", "low")
        assert config.get_default_attack_strength() is AttackStrength.HIGH
        assert config.get_default_alert_threshold() is AlertThreshold.LOW

    @pytest.mark.parametrize(
        ("key", "value", "getter"),
        [
            ("SCANCTL_DEFAULT_ATTACK_STRENGTH", "DEFAULT", config.get_default_attack_strength),
            ("SCANCTL_DEFAULT_ALERT_THRESHOLD", "OFF", config.get_default_alert_threshold),
            ("SCANCTL_DEFAULT_ALERT_THRESHOLD", "sometimes", config.get_default_alert_threshold),
        ],
    )
    def test_default_settings_must_be_concrete(
        self, isolated_home: Path, monkeypatch: pytest.MonkeyPatch, key: str, value: str, getter
    ) -> None:
        monkeypatch.setenv(key, value)
        with pytest.raises(ValueError):
            getter()

    def test_flags(self, isolated_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        assert config.is_debug() is False
        monkeypatch.setenv("SCANCTL_DEBUG", "yes")
        monkeypatch.setenv("SCANCTL_VERBOSE", "1")
        assert config.is_debug() is True
        assert config.is_verbose() is True


class TestProjectSetup:
    def test_create_project_config_template(self, project_dir: Path) -> None:
        env_path = config.create_project_config(project_dir)
        assert env_path == config.get_project_env_path(project_dir)
        text = env_path.read_text()
        for key in config.CONFIG_KEYS:
            assert f"# {key}=" in text
        # commented keys resolve to nothing
        assert config.load_project_config(project_dir) == {}

    def test_create_global_config_is_idempotent(self, isolated_home: Path) -> None:
        path = config.create_global_config()
        path.write_text("SCANCTL_DEBUG: true\n")
        assert config.create_global_config() == path
        assert config.load_global_config() == {"SCANCTL_DEBUG": True}
