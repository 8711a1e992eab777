"""Live display panel for a running scan."""

import threading
import time
from dataclasses import dataclass, field

from rich.panel import Panel
from rich.text import Text

from scanctl.modules.checks import Alert
from scanctl.modules.scan import ActiveScan, ScanListener, ScanState


@dataclass
class ScanProgressState:
    """Latest worker report for the live display."""

    host: str = ""
    message: str = ""
    alerts: list[str] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started


class ProgressListener(ScanListener):
    """Feeds scan events into a ``ScanProgressState`` from the worker thread."""

    def __init__(self, state: ScanProgressState):
        self.state = state
        self._lock = threading.Lock()

    def scan_progress(self, scan: ActiveScan, host: str, message: str, percentage: int) -> None:
        with self._lock:
            self.state.host = host
            self.state.message = message

    def alert_found(self, scan: ActiveScan, alert: Alert) -> None:
        with self._lock:
            self.state.alerts.append(f"{alert.name} ({alert.url})")


def create_scan_panel(scan: ActiveScan, state: ScanProgressState) -> Panel:
    """Build a Rich Panel showing scan progress."""
    scan_state = scan.state
    if scan_state is ScanState.FINISHED:
        status = Text("✓ Finished", style="green")
    elif scan_state is ScanState.PAUSED:
        status = Text("‖ Paused", style="yellow")
    else:
        status = Text("● Scanning", style="cyan")

    content = Text()
    content.append_text(status)
    content.append(
        f"    {scan.progress}%    ⏱ {state.elapsed:.1f}s    "
        f"{scan.total_requests} requests    {len(scan.alert_ids())} alerts",
        style="dim",
    )
    if state.message:
        content.append("\n")
        content.append(state.message[:80], style="white")
    for alert in state.alerts[-3:]:
        content.append("\n")
        content.append(f"! {alert[:77]}", style="red")

    return Panel(
        content,
        title=f"[bold cyan]Active Scan[/] [dim](#{scan.id})[/]",
        subtitle=f"[dim]{scan.site}[/]",
        border_style="cyan",
        padding=(0, 1),
    )
