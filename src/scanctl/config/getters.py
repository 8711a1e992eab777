"""Configuration getter functions."""

import os
from pathlib import Path
from typing import Any

from scanctl.modules.policy.models import (
    AlertThreshold,
    AttackStrength,
    parse_alert_threshold,
    parse_attack_strength,
)
from scanctl.modules.scan.models import DEFAULT_MAX_RESULTS_TO_LIST

from .env_loader import (
    PROJECT_MARKER,
    find_project_dir,
    get_global_config_dir,
    load_global_config,
    load_project_config,
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def get_config(key: str, project_dir: Path | None = None, default: Any = None) -> Any:
    """
    Get configuration value with priority:
    1. Environment variable
    2. Project .env file
    3. Global config file
    4. Default value

    Args:
        key: Configuration key
        project_dir: Optional project directory
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    # 1. Check environment variable
    env_value = os.environ.get(key)
    if env_value:
        return env_value

    # 2. Check project .env file
    project_config = load_project_config(project_dir)
    if key in project_config:
        return project_config[key]

    # 3. Check global config
    global_config = load_global_config()
    if key in global_config:
        return global_config[key]

    # 4. Return default
    return default


def _get_bool(key: str, project_dir: Path | None) -> bool:
    value = get_config(key, project_dir, default=False)
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def get_max_results_to_list(project_dir: Path | None = None) -> int:
    """Cap on the message ids each scan keeps visible (default: 100)."""
    value = get_config("SCANCTL_MAX_RESULTS_TO_LIST", project_dir, DEFAULT_MAX_RESULTS_TO_LIST)
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return DEFAULT_MAX_RESULTS_TO_LIST


def get_db_path(project_dir: Path | None = None) -> Path:
    """Session database path: project storage when inside a project, else ~/.scanctl."""
    value = get_config("SCANCTL_DB_PATH", project_dir)
    if value:
        return Path(value).expanduser()
    project_dir = project_dir or find_project_dir()
    if project_dir is not None:
        return project_dir / PROJECT_MARKER / "scanctl.db"
    return get_global_config_dir() / "scanctl.db"


def get_catalog_path(project_dir: Path | None = None) -> Path:
    """Scanner catalog (policy) file."""
    value = get_config("SCANCTL_CATALOG_PATH", project_dir)
    if value:
        return Path(value).expanduser()
    return get_global_config_dir() / "scanners.yml"


def get_default_attack_strength(project_dir: Path | None = None) -> AttackStrength:
    value = get_config("SCANCTL_DEFAULT_ATTACK_STRENGTH", project_dir, "MEDIUM")
    strength = parse_attack_strength(value)
    if strength is AttackStrength.DEFAULT:
        raise ValueError("SCANCTL_DEFAULT_ATTACK_STRENGTH must name a concrete strength")
    return strength


def get_default_alert_threshold(project_dir: Path | None = None) -> AlertThreshold:
    value = get_config("SCANCTL_DEFAULT_ALERT_THRESHOLD", project_dir, "MEDIUM")
    threshold = parse_alert_threshold(value)
    if threshold in (AlertThreshold.DEFAULT, AlertThreshold.OFF):
        raise ValueError("SCANCTL_DEFAULT_ALERT_THRESHOLD must be LOW, MEDIUM or HIGH")
    return threshold


def is_verbose(project_dir: Path | None = None) -> bool:
    return _get_bool("SCANCTL_VERBOSE", project_dir)


def is_debug(project_dir: Path | None = None) -> bool:
    return _get_bool("SCANCTL_DEBUG", project_dir)
