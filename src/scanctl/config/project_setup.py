"""Global config file and project storage setup."""

from pathlib import Path

import yaml

from .env_loader import PROJECT_MARKER, get_global_config_dir

CONFIG_KEYS: dict[str, str] = {
    "SCANCTL_MAX_RESULTS_TO_LIST": "Message ids kept visible per scan",
    "SCANCTL_DB_PATH": "Session database (exclude-from-scan patterns)",
    "SCANCTL_CATALOG_PATH": "Scanner catalog / policy file",
    "SCANCTL_DEFAULT_ATTACK_STRENGTH": "Strength used for scanners set to DEFAULT",
    "SCANCTL_DEFAULT_ALERT_THRESHOLD": "Threshold used for scanners set to DEFAULT",
    "SCANCTL_VERBOSE": "Verbose logging (true/false)",
    "SCANCTL_DEBUG": "Debug tracing of control-plane calls (true/false)",
}


def ensure_project_storage_dir(project_dir: Path) -> Path:
    """Ensure the project .scanctl directory exists and return it."""
    storage = project_dir / PROJECT_MARKER
    storage.mkdir(parents=True, exist_ok=True)
    return storage


def get_project_env_path(project_dir: Path | None) -> Path | None:
    """Get the project .env path."""
    if project_dir is None:
        return None
    return project_dir / PROJECT_MARKER / ".env"


def create_global_config() -> Path:
    """Create global config directory and file if they don't exist."""
    config_dir = get_global_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    config_path = config_dir / "config.yml"
    if not config_path.exists():
        default_config = {
            "SCANCTL_MAX_RESULTS_TO_LIST": 100,
            "SCANCTL_DEFAULT_ATTACK_STRENGTH": "MEDIUM",
            "SCANCTL_DEFAULT_ALERT_THRESHOLD": "MEDIUM",
        }
        with open(config_path, "w") as f:
            yaml.dump(default_config, f, default_flow_style=False)

    return config_path


def create_project_config(project_dir: Path) -> Path:
    """Create a commented project .env template if one doesn't exist."""
    env_path = ensure_project_storage_dir(project_dir) / ".env"
    if not env_path.exists():
        lines = ["# scanctl project configuration", ""]
        for key, description in CONFIG_KEYS.items():
            lines.append(f"# {description}")
            lines.append(f"# {key}=")
        env_path.write_text("\n".join(lines) + "\n")
    return env_path
