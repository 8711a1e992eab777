"""Shared CLI app objects and project helpers."""

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from scanctl.config import find_project_dir, is_debug, is_verbose
from scanctl.utils.debug import set_debug_enabled
from scanctl.utils.log import init_logging

app = typer.Typer(
    name="scanctl",
    help="Coordinate active scans and control scanner policy",
    no_args_is_help=True,
)
console = Console()


def get_project_dir() -> Path | None:
    """Find the project directory by looking for a .scanctl marker."""
    return find_project_dir()


def print_result(result: Any) -> None:
    """Print a control-plane result: structured values as JSON, scalars as text."""
    if isinstance(result, (dict, list)):
        console.print_json(json.dumps(result, default=str))
    else:
        console.print(str(result))


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    debug: bool = typer.Option(False, "--debug", help="Trace control-plane calls"),
) -> None:
    """Coordinate active scans and control scanner policy."""
    project_dir = get_project_dir()
    debug = debug or is_debug(project_dir)
    verbose = verbose or debug or is_verbose(project_dir)
    log_file = project_dir / ".scanctl" / "scanctl.log" if project_dir else None
    init_logging(verbose=verbose, log_file=log_file)
    set_debug_enabled(debug)
