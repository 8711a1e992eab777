"""Background worker that runs scan checks for one scan."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from scanctl.modules.checks.base import CheckContext
from scanctl.modules.checks.models import Alert, Exchange
from scanctl.modules.policy.models import ScannerPlugin
from scanctl.modules.policy.store import PolicyStore
from scanctl.modules.sitetree import SiteNode

from .models import ScanOptions

logger = logging.getLogger(__name__)


class WorkerHost(Protocol):
    """Callbacks the worker reports progress and evidence through."""

    def host_progress(self, host: str, message: str, percentage: int) -> None: ...

    def notify_new_message(self, exchange: Exchange) -> None: ...

    def alert_found(self, alert: Alert) -> None: ...

    def host_complete(self, host: str) -> None: ...

    def scanner_complete(self) -> None: ...


class ScanWorker(threading.Thread):
    """Runs every runnable plugin against every selected node.

    Pause and stop are cooperative: the worker checks them before each unit of
    work, where a unit is one plugin run against one node.
    """

    def __init__(
        self,
        host: WorkerHost,
        start_node: SiteNode,
        options: ScanOptions,
        policy: PolicyStore,
        is_excluded: Callable[[str], bool] | None = None,
        name: str | None = None,
    ):
        super().__init__(name=name or f"scan-worker-{start_node.name}", daemon=True)
        self._host = host
        self._start_node = start_node
        self._options = options
        self._policy = policy
        self._is_excluded = is_excluded
        self._resumed = threading.Event()
        self._resumed.set()
        self._stopped = threading.Event()

    # -- control signals ----------------------------------------------------

    def pause(self) -> None:
        self._resumed.clear()

    def resume(self) -> None:
        self._resumed.set()

    def stop(self) -> None:
        self._stopped.set()
        # wake a paused worker so it can observe the stop
        self._resumed.set()

    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def is_paused(self) -> bool:
        return not self._resumed.is_set()

    def _checkpoint(self) -> bool:
        """Block while paused. Returns False once the scan has been stopped."""
        self._resumed.wait()
        return not self._stopped.is_set()

    # -- reporter interface handed to checks ----------------------------------

    def notify_new_message(self, exchange: Exchange) -> None:
        self._host.notify_new_message(exchange)

    def alert_found(self, alert: Alert) -> None:
        self._host.alert_found(alert)

    # -- work -------------------------------------------------------------

    def select_nodes(self) -> list[SiteNode]:
        """Return the nodes to scan: the start node and, when recursing, its descendants."""
        candidates = self._start_node.walk() if self._options.recurse else [self._start_node]
        nodes: list[SiteNode] = []
        for node in candidates:
            if not node.url:
                continue
            if self._options.in_scope_only and not node.in_scope:
                continue
            if self._is_excluded is not None and self._is_excluded(node.url):
                logger.debug("Skipping excluded node %s", node.url)
                continue
            nodes.append(node)
        return nodes

    def run(self) -> None:
        host = self._start_node.name
        try:
            self._scan(host)
        except Exception:
            logger.exception("Scan of %s aborted by an unexpected error", host)
        finally:
            self._host.host_complete(host)
            self._host.scanner_complete()

    def _scan(self, host: str) -> None:
        nodes = self.select_nodes()
        plugins = self._policy.runnable_plugins()
        total = len(nodes) * len(plugins)
        logger.info("Scanning %s: %d node(s) x %d scanner(s)", host, len(nodes), len(plugins))
        if total == 0:
            self._host.host_progress(host, "nothing to scan", 100)
            return

        done = 0
        for plugin in plugins:
            context = CheckContext(
                reporter=self,
                attack_strength=self._policy.effective_attack_strength(plugin),
                alert_threshold=self._policy.effective_alert_threshold(plugin),
            )
            for node in nodes:
                if not self._checkpoint():
                    logger.info("Scan of %s stopped after %d/%d units", host, done, total)
                    return
                self._run_check(plugin, node, context)
                done += 1
                self._host.host_progress(host, plugin.name, done * 100 // total)

    def _run_check(self, plugin: ScannerPlugin, node: SiteNode, context: CheckContext) -> None:
        check = plugin.check
        if check is None:
            return
        try:
            check.scan(node, context)
        except Exception as exc:
            logger.warning(
                "Scanner %d (%s) failed on %s: %s", plugin.id, plugin.name, node.url, exc
            )
            logger.debug("Scanner failure details", exc_info=True)
