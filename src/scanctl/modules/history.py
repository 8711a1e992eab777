"""Persistence boundary for exchanges and alerts observed by scans."""

import threading
from typing import Protocol

from scanctl.modules.checks.models import Alert, Exchange


class HistoryStore(Protocol):
    """Issues the ids scans use to reference persisted exchanges and alerts."""

    def persist_exchange(self, exchange: Exchange) -> int: ...

    def persist_alert(self, alert: Alert) -> int: ...


class InMemoryHistoryStore:
    """In-memory history that keeps the most recent records and hands out ids."""

    def __init__(self, max_entries: int = 5000):
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._exchanges: dict[int, Exchange] = {}
        self._alerts: dict[int, Alert] = {}
        self._next_history_id = 1
        self._next_alert_id = 1

    def persist_exchange(self, exchange: Exchange) -> int:
        """Store an exchange and assign it an auto-incremented history id."""
        with self._lock:
            exchange.history_id = self._next_history_id
            self._next_history_id += 1
            self._exchanges[exchange.history_id] = exchange
            self._evict(self._exchanges)
            return exchange.history_id

    def persist_alert(self, alert: Alert) -> int:
        with self._lock:
            alert.alert_id = self._next_alert_id
            self._next_alert_id += 1
            self._alerts[alert.alert_id] = alert
            self._evict(self._alerts)
            return alert.alert_id

    def _evict(self, records: dict) -> None:
        while len(records) > self.max_entries:
            records.pop(next(iter(records)))

    def get_exchange(self, history_id: int) -> Exchange | None:
        with self._lock:
            return self._exchanges.get(history_id)

    def get_alert(self, alert_id: int) -> Alert | None:
        with self._lock:
            return self._alerts.get(alert_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._exchanges)
