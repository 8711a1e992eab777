"""Lifecycle state machine of a single active scan."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from scanctl.modules.checks.models import UNSAVED_ALERT_ID, Alert, Exchange
from scanctl.modules.evidence import EvidenceTracker
from scanctl.modules.policy.store import PolicyStore
from scanctl.modules.sitetree import SiteNode, SiteTree

from .listeners import ScanListener
from .models import ScanOptions, ScanState
from .notify import ImmediateSink, NotificationSink
from .worker import ScanWorker

if TYPE_CHECKING:
    from scanctl.modules.history import HistoryStore

logger = logging.getLogger(__name__)


class ActiveScan:
    """One run of the enabled scan checks against a site.

    States move ``NOT_STARTED -> RUNNING <-> PAUSED -> FINISHED``; ``stop`` jumps
    straight to ``FINISHED`` from either active state. Calls that are not valid in
    the current state are ignored and return False. None of the control methods
    wait for the worker thread.

    State changes are published while the scan lock is held, so listeners see
    them in the order they happened.
    """

    def __init__(
        self,
        scan_id: int,
        site: str,
        policy: PolicyStore,
        options: ScanOptions | None = None,
        site_tree: SiteTree | None = None,
        start_node: SiteNode | None = None,
        history: HistoryStore | None = None,
        is_excluded: Callable[[str], bool] | None = None,
        sink: NotificationSink | None = None,
    ):
        self.id = scan_id
        self.site = site
        self.options = options or ScanOptions()
        self.start_node = start_node
        self.evidence = EvidenceTracker(self.options.max_results_to_list)
        self._policy = policy
        self._site_tree = site_tree
        self._history = history
        self._is_excluded = is_excluded
        self._sink = sink or ImmediateSink()
        self._lock = threading.RLock()
        self._listeners: list[ScanListener] = []
        self._worker: ScanWorker | None = None
        self._state = ScanState.NOT_STARTED
        self._progress = 0
        self._time_started: datetime | None = None
        self._time_finished: datetime | None = None

    def __repr__(self) -> str:
        return f"ActiveScan(id={self.id}, site={self.site!r}, state={self.state.name})"

    # -- observers ------------------------------------------------------------

    def add_listener(self, listener: ScanListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ScanListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, event: str, *args: Any) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            self._sink.deliver(getattr(listener, event), self, *args)

    def _set_state(self, new: ScanState) -> ScanState:
        old = self._state
        self._state = new
        if new is ScanState.FINISHED and self._time_finished is None:
            self._time_finished = datetime.now(UTC)
        return old

    # -- read-only state -------------------------------------------------------

    @property
    def state(self) -> ScanState:
        with self._lock:
            return self._state

    @property
    def progress(self) -> int:
        with self._lock:
            return self._progress

    @property
    def time_started(self) -> datetime | None:
        return self._time_started

    @property
    def time_finished(self) -> datetime | None:
        return self._time_finished

    @property
    def total_requests(self) -> int:
        return self.evidence.total_observed

    def message_ids(self) -> tuple[int, ...]:
        return self.evidence.snapshot_message_ids()

    def alert_ids(self) -> tuple[int, ...]:
        return self.evidence.snapshot_alert_ids()

    def is_worker_alive(self) -> bool:
        worker = self._worker
        return worker is not None and worker.is_alive()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the worker thread exits. Returns False on timeout."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    # -- transitions -----------------------------------------------------------

    def _resolve_start_node(self) -> SiteNode | None:
        if self.start_node is not None:
            return self.start_node
        if self._site_tree is None:
            return None
        if self.options.in_scope_only:
            return self._site_tree.root()
        return self._site_tree.find_site(self.site)

    def start(self) -> bool:
        """Resolve the start node, reset progress and evidence, and launch the worker."""
        with self._lock:
            if self._state is not ScanState.NOT_STARTED:
                logger.debug("Scan %d already started (%s)", self.id, self._state.name)
                return False
            start_node = self._resolve_start_node()
            if start_node is None:
                logger.error("Failed to find site %s", self.site)
                return False
            self.start_node = start_node
            self.evidence.reset()
            self._progress = 0
            self._time_started = datetime.now(UTC)
            self._worker = ScanWorker(
                host=self,
                start_node=start_node,
                options=self.options,
                policy=self._policy,
                is_excluded=self._is_excluded,
                name=f"scan-{self.id}",
            )
            old = self._set_state(ScanState.RUNNING)
            self._notify("scan_started")
            self._notify("scan_state_changed", old, ScanState.RUNNING)
            self._worker.start()
        logger.info("Scan %d started on %s", self.id, self.site)
        return True

    def pause(self) -> bool:
        with self._lock:
            if self._state is not ScanState.RUNNING or self._worker is None:
                return False
            self._worker.pause()
            old = self._set_state(ScanState.PAUSED)
            self._notify("scan_state_changed", old, ScanState.PAUSED)
        return True

    def resume(self) -> bool:
        with self._lock:
            if self._state is not ScanState.PAUSED or self._worker is None:
                return False
            self._worker.resume()
            old = self._set_state(ScanState.RUNNING)
            self._notify("scan_state_changed", old, ScanState.RUNNING)
        return True

    def stop(self) -> bool:
        """Ask the worker to stop and mark the scan finished without waiting for it."""
        with self._lock:
            if self._state not in (ScanState.RUNNING, ScanState.PAUSED) or self._worker is None:
                return False
            self._worker.stop()
            old = self._set_state(ScanState.FINISHED)
            self._notify("scan_state_changed", old, ScanState.FINISHED)
        logger.info("Scan %d stopped", self.id)
        return True

    # -- worker callbacks --------------------------------------------------------

    def host_progress(self, host: str, message: str, percentage: int) -> None:
        """Store the latest reported percentage as-is, clamped to 0..100."""
        value = max(0, min(100, int(percentage)))
        with self._lock:
            self._progress = value
        self._notify("scan_progress", host, message, value)

    def notify_new_message(self, exchange: Exchange) -> None:
        """Count an exchange and keep its id while under the visible cap."""
        history_id = exchange.history_id
        if history_id is None:
            if self._history is None:
                logger.warning(
                    "Scan %d dropped an unsaved exchange for %s", self.id, exchange.url
                )
                return
            try:
                history_id = self._history.persist_exchange(exchange)
            except Exception as exc:
                logger.error(
                    "Scan %d failed to persist exchange %s: %s", self.id, exchange.url, exc
                )
                return
        self.evidence.record_exchange(history_id)
        self._notify("message_recorded", history_id)

    def alert_found(self, alert: Alert) -> None:
        """Record the id of a raised finding; unsaved findings are persisted first."""
        if alert.alert_id == UNSAVED_ALERT_ID and self._history is not None:
            try:
                self._history.persist_alert(alert)
            except Exception as exc:
                logger.error("Scan %d failed to persist alert %s: %s", self.id, alert.name, exc)
        if alert.alert_id != UNSAVED_ALERT_ID:
            self.evidence.record_finding(alert.alert_id)
        self._notify("alert_found", alert)

    def host_complete(self, host: str) -> None:
        self._notify("host_complete", host)

    def scanner_complete(self) -> None:
        """Called by the worker when it exits, whether it ran out of work or was stopped."""
        with self._lock:
            if self._state in (ScanState.RUNNING, ScanState.PAUSED):
                old = self._set_state(ScanState.FINISHED)
                self._notify("scan_state_changed", old, ScanState.FINISHED)
                logger.info("Scan %d finished", self.id)
            self._notify("scan_complete")
