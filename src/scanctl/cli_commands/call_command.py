"""Generic control-plane CLI command."""

import typer

from scanctl.api import ApiError

from .deps import cli_module
from .shared import app, console, get_project_dir, print_result


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a params dict."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {pair!r}")
        params[key.strip()] = value
    return params


@app.command()
def call(
    kind: str = typer.Argument("", help="Endpoint kind: action or view"),
    name: str = typer.Argument("", help="Action or view name"),
    param: list[str] = typer.Option([], "--param", "-p", help="Parameter as key=value"),
    list_endpoints: bool = typer.Option(False, "--list", help="List actions and views"),
) -> None:
    """Invoke a control-plane action or view."""
    cli = cli_module()

    engine = cli.build_engine(project_dir=get_project_dir(), persist_policy=True)
    try:
        if list_endpoints:
            print_result(engine.api.describe())
            return

        params = parse_params(param)
        try:
            if kind == "action":
                result = engine.api.handle_action(name, params)
            elif kind == "view":
                result = engine.api.handle_view(name, params)
            else:
                console.print(f"[red]Unknown kind: {kind!r}. Use 'action' or 'view'.[/red]")
                raise typer.Exit(1)
        except ApiError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from exc
        print_result(result)
    finally:
        engine.close()
