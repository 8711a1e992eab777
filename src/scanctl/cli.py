"""scanctl CLI - active scan coordination and scanner policy control.

Commands live in ``scanctl.cli_commands``; this module is the facade they resolve
shared dependencies from.
"""

from scanctl.config import (
    CONFIG_KEYS,
    create_global_config,
    create_project_config,
    get_catalog_path,
    get_config,
    get_db_path,
    get_project_env_path,
    load_global_config,
    load_project_config,
)
from scanctl.engine import build_engine

from .cli_commands import (  # noqa: F401  (registers commands)
    call_command,
    config_command,
    policy_command,
    scan_command,
)
from .cli_commands.shared import app, console, get_project_dir

__all__ = [
    "CONFIG_KEYS",
    "app",
    "build_engine",
    "console",
    "create_global_config",
    "create_project_config",
    "get_catalog_path",
    "get_config",
    "get_db_path",
    "get_project_dir",
    "get_project_env_path",
    "load_global_config",
    "load_project_config",
    "main",
]


@app.command()
def version() -> None:
    """Show the installed scanctl version."""
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as pkg_version

    try:
        current_version = pkg_version("scanctl")
    except PackageNotFoundError:
        current_version = "0.0.0+unknown"

    console.print(f"scanctl {current_version}")


def main():
    """Entry point for the CLI."""
    app()
