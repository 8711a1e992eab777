"""
Configuration management for scanctl.

Supports multiple configuration sources in order of priority:
1. Environment variables (highest priority)
2. Project .env file (.scanctl/.env)
3. Global config file (~/.scanctl/config.yml)
4. Default values (lowest priority)
"""

from .env_loader import (
    PROJECT_MARKER,
    find_project_dir,
    get_global_config_dir,
    is_global_config_dir,
    load_env_file,
    load_global_config,
    load_project_config,
)
from .getters import (
    get_catalog_path,
    get_config,
    get_db_path,
    get_default_alert_threshold,
    get_default_attack_strength,
    get_max_results_to_list,
    is_debug,
    is_verbose,
)
from .project_setup import (
    CONFIG_KEYS,
    create_global_config,
    create_project_config,
    ensure_project_storage_dir,
    get_project_env_path,
)

__all__ = [
    # env_loader
    "PROJECT_MARKER",
    "find_project_dir",
    "get_global_config_dir",
    "is_global_config_dir",
    "load_env_file",
    "load_global_config",
    "load_project_config",
    # getters
    "get_catalog_path",
    "get_config",
    "get_db_path",
    "get_default_alert_threshold",
    "get_default_attack_strength",
    "get_max_results_to_list",
    "is_debug",
    "is_verbose",
    # project_setup
    "CONFIG_KEYS",
    "create_global_config",
    "create_project_config",
    "ensure_project_storage_dir",
    "get_project_env_path",
]
