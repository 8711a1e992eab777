"""Debug tracing of control-plane calls.

Tracing is process wide, so calls made from scan worker threads are traced too.
Output goes to stderr so it never mixes with command results.
"""

import json
import threading
from typing import Any

from rich.console import Console
from rich.syntax import Syntax

_enabled = threading.Event()
_console = Console(stderr=True)

MAX_LIST_ITEMS = 20
MAX_TEXT = 100


def set_debug_enabled(enabled: bool) -> None:
    if enabled:
        _enabled.set()
    else:
        _enabled.clear()


def is_debug_enabled() -> bool:
    return _enabled.is_set()


def _show_value(label: str, value: Any) -> None:
    if isinstance(value, dict):
        try:
            rendered = json.dumps(value, indent=2, default=str)
        except (TypeError, ValueError):
            _console.print(f"  {label}: {value}", style="dim", markup=False)
            return
        _console.print(f"  {label}:", style="dim", markup=False)
        _console.print(Syntax(rendered, "json", theme="monokai", line_numbers=False))
    elif isinstance(value, (list, tuple)):
        head = ", ".join(str(item) for item in value[:MAX_LIST_ITEMS])
        extra = len(value) - MAX_LIST_ITEMS
        if extra > 0:
            head += f", +{extra} more"
        _console.print(f"  {label}: {head}", style="dim", markup=False)
    elif isinstance(value, str) and len(value) > MAX_TEXT:
        shown = f"{value[:MAX_TEXT]}... ({len(value)} chars)"
        _console.print(f"  {label}: {shown}", style="dim", markup=False)
    else:
        _console.print(f"  {label}: {value}", style="dim", markup=False)


def debug_print(category: str, message: str, **data: Any) -> None:
    """Print a tagged debug line plus any non-None ``data`` values, when enabled."""
    if not is_debug_enabled():
        return
    _console.print(f"[DEBUG:{category}] {message}", style="bold cyan", markup=False)
    for label, value in data.items():
        if value is not None:
            _show_value(label, value)


def debug_api_call(
    kind: str,
    name: str,
    params: dict[str, Any],
    start: bool = True,
    elapsed: float | None = None,
    result: Any = None,
    error: str | None = None,
) -> None:
    """Trace one control-plane call.

    Args:
        kind: "action" or "view"
        name: Action or view name
        params: Call parameters
        start: True when the call begins, False when it returns
        elapsed: Seconds the call took (completion only)
        result: Returned value (completion only)
        error: Error description when the call failed
    """
    if not is_debug_enabled():
        return
    if start:
        debug_print("api", f"→ {kind} {name}", Params=dict(params))
        return
    timing = "" if elapsed is None else f" +{elapsed:.3f}s"
    if error:
        debug_print("api", f"✗ {kind} {name}{timing}", Error=error)
    else:
        debug_print("api", f"← {kind} {name}{timing}", Result=result)
