"""Environment variable and configuration file loading."""

from pathlib import Path
from typing import Any

import yaml

PROJECT_MARKER = ".scanctl"


def get_global_config_dir() -> Path:
    return Path.home() / ".scanctl"


def is_global_config_dir(path: Path) -> bool:
    """Return True if the path is the global ~/.scanctl config directory."""
    home_config = get_global_config_dir()
    try:
        return path.resolve() == home_config.resolve()
    except FileNotFoundError:
        return path == home_config


def find_project_dir(start: Path | None = None) -> Path | None:
    """Walk up from ``start`` (default: cwd) to the nearest directory holding a .scanctl marker."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        marker = current / PROJECT_MARKER
        if marker.is_dir() and not is_global_config_dir(marker):
            return current
        current = current.parent
    return None


def load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from .env file."""
    env_vars = {}
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    # Remove quotes if present
                    value = value.strip().strip("\"'")
                    env_vars[key.strip()] = value
    return env_vars


def load_global_config() -> dict[str, Any]:
    """Load global configuration from ~/.scanctl/config.yml."""
    config_path = get_global_config_dir() / "config.yml"
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


def load_project_config(project_dir: Path | None = None) -> dict[str, str]:
    """Load project-specific configuration from .scanctl/.env."""
    if project_dir is None:
        project_dir = find_project_dir()
    if project_dir is None:
        return {}
    return load_env_file(project_dir / PROJECT_MARKER / ".env")
