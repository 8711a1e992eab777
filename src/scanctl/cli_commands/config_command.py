"""Configuration CLI command."""

from pathlib import Path

import typer
import yaml

from .deps import cli_module
from .shared import app, console, get_project_dir


@app.command()
def config(
    action: str = typer.Argument("show", help="Action: show, init"),
    project: bool = typer.Option(
        False,
        "--project",
        help="Create a project .env template instead of the global config",
    ),
) -> None:
    """Show resolved configuration or create a config template."""
    cli = cli_module()
    project_dir = get_project_dir()

    if action == "init":
        if project:
            if project_dir is None:
                project_dir = Path.cwd()
            env_path = cli.create_project_config(project_dir)
            console.print(f"[green]Created project config:[/green] {env_path}")
            return
        config_path = cli.create_global_config()
        console.print(f"[green]Created global config:[/green] {config_path}")
        return

    if action == "show":
        console.print("[bold]Resolved configuration:[/bold]")
        for key in cli.CONFIG_KEYS:
            value = cli.get_config(key, project_dir)
            shown = "[dim](default)[/dim]" if value is None else str(value)
            console.print(f"  {key}={shown}")
        console.print(f"  [dim]database: {cli.get_db_path(project_dir)}[/dim]")
        console.print(f"  [dim]catalog:  {cli.get_catalog_path(project_dir)}[/dim]")

        env_path = cli.get_project_env_path(project_dir)
        if env_path is not None and env_path.exists():
            console.print(f"\n[bold]Project file ({env_path}):[/bold]")
            for key, value in cli.load_project_config(project_dir).items():
                console.print(f"  {key}={value}")
        global_config = cli.load_global_config()
        if global_config:
            console.print("\n[bold]Global file (~/.scanctl/config.yml):[/bold]")
            console.print(yaml.dump(global_config, default_flow_style=False))
        return

    console.print(f"[red]Unknown action: {action}. Use 'show' or 'init'.[/red]")
    raise typer.Exit(1)
