"""Scan CLI command."""

import typer
from rich.live import Live

from scanctl.api import ApiError

from .deps import cli_module
from .scan_display import ProgressListener, ScanProgressState, create_scan_panel
from .shared import app, console, get_project_dir


@app.command()
def scan(
    url: str = typer.Argument(..., help="Absolute URL to start scanning from"),
    recurse: bool = typer.Option(True, "--recurse/--no-recurse", help="Scan child nodes"),
    in_scope_only: bool = typer.Option(
        False,
        "--in-scope-only",
        help="Only scan nodes marked in scope",
    ),
    live: bool = typer.Option(True, "--live/--no-live", help="Show a live progress panel"),
) -> None:
    """Run an active scan against URL with the enabled scanners and wait for it to finish."""
    cli = cli_module()
    engine = cli.build_engine(project_dir=get_project_dir())
    try:
        try:
            engine.site_tree.add_url(url)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from exc

        state = ScanProgressState()
        engine.registry.add_listener(ProgressListener(state))
        try:
            scan_id = engine.api.handle_action(
                "scan",
                {"url": url, "recurse": recurse, "inScopeOnly": in_scope_only},
            )
        except ApiError as exc:
            console.print(f"[red]Scan failed: {exc}[/red]")
            raise typer.Exit(1) from exc

        active = engine.registry.get(scan_id)
        console.print(f"[green]Started scan {scan_id}[/green] on {active.site}")

        # Closing the engine stops every scan, so the command blocks until this one is done.
        try:
            if live:
                panel = create_scan_panel(active, state)
                with Live(panel, console=console, refresh_per_second=4) as display:
                    while not active.wait(0.25):
                        display.update(create_scan_panel(active, state))
                    display.update(create_scan_panel(active, state))
            else:
                while not active.wait(0.25):
                    pass
        except KeyboardInterrupt:
            active.stop()
            console.print("[yellow]Scan stopped.[/yellow]")

        console.print(
            f"[bold]Scan {scan_id}:[/bold] {active.state.value} at {active.progress}%, "
            f"{active.total_requests} requests, {len(active.alert_ids())} alerts"
        )
    finally:
        engine.close()
