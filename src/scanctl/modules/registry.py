"""Registry of the scans started in this process."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from scanctl.modules.policy.store import PolicyStore
from scanctl.modules.scan import (
    ActiveScan,
    ImmediateSink,
    NotificationSink,
    ScanListener,
    ScanOptions,
)
from scanctl.modules.sitetree import SiteNode, SiteTree

if TYPE_CHECKING:
    from scanctl.modules.history import HistoryStore

logger = logging.getLogger(__name__)


class ScanRegistry:
    """Owns every scan, hands out ids and remembers the most recently created scan.

    Scans stay registered until removed; removing a scan that is still running
    stops it first so no worker is left behind.
    """

    def __init__(
        self,
        policy: PolicyStore,
        site_tree: SiteTree | None = None,
        history: HistoryStore | None = None,
        is_excluded: Callable[[str], bool] | None = None,
        sink: NotificationSink | None = None,
    ):
        self.policy = policy
        self.site_tree = site_tree
        self._history = history
        self._is_excluded = is_excluded
        self._sink = sink or ImmediateSink()
        self._lock = threading.RLock()
        self._scans: dict[int, ActiveScan] = {}
        self._next_id = 0
        self._last: ActiveScan | None = None
        self._listeners: list[ScanListener] = []

    def add_listener(self, listener: ScanListener) -> None:
        """Attach a listener to every scan created from now on."""
        with self._lock:
            self._listeners.append(listener)

    def create_scan(
        self,
        site: str,
        options: ScanOptions | None = None,
        start_node: SiteNode | None = None,
    ) -> ActiveScan:
        """Register a new scan, record it as the last created one and start it."""
        with self._lock:
            scan_id = self._next_id
            self._next_id += 1
            scan = ActiveScan(
                scan_id,
                site,
                self.policy,
                options=options,
                site_tree=self.site_tree,
                start_node=start_node,
                history=self._history,
                is_excluded=self._is_excluded,
                sink=self._sink,
            )
            for listener in self._listeners:
                scan.add_listener(listener)
            self._scans[scan_id] = scan
            self._last = scan
        scan.start()
        return scan

    def get(self, scan_id: int) -> ActiveScan | None:
        with self._lock:
            return self._scans.get(scan_id)

    def get_last(self) -> ActiveScan | None:
        """Return the most recently created scan, while it is still registered."""
        with self._lock:
            return self._last

    def all_scans(self) -> list[ActiveScan]:
        """Snapshot of registered scans ordered by id."""
        with self._lock:
            return [self._scans[scan_id] for scan_id in sorted(self._scans)]

    def remove(self, scan_id: int) -> ActiveScan | None:
        """Stop the scan if needed and unregister it. Returns None for unknown ids."""
        with self._lock:
            scan = self._scans.pop(scan_id, None)
            if scan is not None and self._last is scan:
                self._last = None
        if scan is not None:
            scan.stop()
            logger.info("Removed scan %d", scan_id)
        return scan

    def remove_all(self) -> int:
        """Stop and unregister every scan. Returns how many were removed."""
        with self._lock:
            scans = list(self._scans.values())
            self._scans.clear()
            self._last = None
        for scan in scans:
            scan.stop()
        if scans:
            logger.info("Removed %d scan(s)", len(scans))
        return len(scans)

    def for_each(self, action: Callable[[ActiveScan], bool]) -> int:
        """Apply an action to each scan independently. Returns how many accepted it."""
        applied = 0
        for scan in self.all_scans():
            try:
                if action(scan):
                    applied += 1
            except Exception:
                logger.exception("Action failed on scan %d", scan.id)
        return applied

    def pause_all(self) -> int:
        return self.for_each(ActiveScan.pause)

    def resume_all(self) -> int:
        return self.for_each(ActiveScan.resume)

    def stop_all(self) -> int:
        return self.for_each(ActiveScan.stop)

    def __len__(self) -> int:
        with self._lock:
            return len(self._scans)
