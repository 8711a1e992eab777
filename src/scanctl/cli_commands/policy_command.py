"""Scanner and policy listing CLI commands."""

import typer
from rich.table import Table

from scanctl.api import ApiError

from .deps import cli_module
from .shared import app, console, get_project_dir


def _run_view(name: str, params: dict | None = None):
    cli = cli_module()
    engine = cli.build_engine(project_dir=get_project_dir())
    try:
        return engine.api.handle_view(name, params)
    except ApiError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    finally:
        engine.close()


def _enabled_mark(enabled: bool) -> str:
    return "[green]✓[/]" if enabled else "[dim]✗[/]"


@app.command()
def scanners(
    policy: int | None = typer.Option(None, "--policy", "-p", help="Only list this policy id"),
) -> None:
    """List scanners with their settings."""
    params = {} if policy is None else {"policyId": policy}
    rows = _run_view("scanners", params)

    table = Table(title="Scanners")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name", style="bold white")
    table.add_column("Policy", justify="right")
    table.add_column("Strength")
    table.add_column("Threshold")
    table.add_column("Enabled", justify="center")
    table.add_column("Deps")
    for row in rows:
        deps = ", ".join(str(dep) for dep in row["dependencies"])
        if deps and not row["allDependenciesAvailable"]:
            deps = f"[yellow]{deps}[/]"
        table.add_row(
            str(row["id"]),
            row["name"],
            str(row["policyId"]),
            row["attackStrength"],
            row["alertThreshold"],
            _enabled_mark(row["enabled"]),
            deps or "[dim]-[/]",
        )
    console.print(table)


@app.command()
def policies() -> None:
    """List policies with their aggregate settings."""
    rows = _run_view("policies")

    table = Table(title="Policies")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name", style="bold white")
    table.add_column("Strength")
    table.add_column("Threshold")
    table.add_column("Enabled", justify="center")
    for row in rows:
        table.add_row(
            str(row["id"]),
            row["name"],
            row["attackStrength"] or "[dim]mixed[/]",
            row["alertThreshold"] or "[dim]mixed[/]",
            _enabled_mark(row["enabled"]),
        )
    console.print(table)
