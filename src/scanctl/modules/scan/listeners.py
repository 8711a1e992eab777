"""Observer interface for scan lifecycle and evidence events."""

from __future__ import annotations

from typing import TYPE_CHECKING

from scanctl.modules.checks.models import Alert

from .models import ScanState

if TYPE_CHECKING:
    from .active_scan import ActiveScan


class ScanListener:
    """Receives scan events. Override only the methods you need."""

    def scan_started(self, scan: ActiveScan) -> None:
        pass

    def scan_state_changed(self, scan: ActiveScan, old: ScanState, new: ScanState) -> None:
        pass

    def scan_progress(self, scan: ActiveScan, host: str, message: str, percentage: int) -> None:
        pass

    def message_recorded(self, scan: ActiveScan, history_id: int) -> None:
        pass

    def alert_found(self, scan: ActiveScan, alert: Alert) -> None:
        pass

    def host_complete(self, scan: ActiveScan, host: str) -> None:
        pass

    def scan_complete(self, scan: ActiveScan) -> None:
        pass
