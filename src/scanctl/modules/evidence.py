"""Thread-safe, size-bounded evidence collected by one scan."""

import threading


class EvidenceTracker:
    """Records the exchanges and findings observed during a scan.

    Every exchange is counted, but only the first ``max_visible`` distinct ids are
    retained so that very large scans keep a bounded footprint. Finding ids are kept
    without a cap. Snapshots are immutable copies, so callers can iterate them
    without holding any lock.
    """

    def __init__(self, max_visible: int):
        if max_visible < 0:
            raise ValueError("max_visible must not be negative")
        self.max_visible = max_visible
        self._lock = threading.Lock()
        self._total = 0
        self._message_ids: list[int] = []
        self._message_seen: set[int] = set()
        # dict keeps first-seen order for stable output
        self._alert_ids: dict[int, None] = {}

    def record_exchange(self, history_id: int) -> bool:
        """Count an exchange and retain its id while under the cap.

        A repeated id is counted but not listed again, so the visible list can be
        shorter than ``min(total, cap)`` once duplicates arrive.

        Returns True if the id was added to the visible list.
        """
        with self._lock:
            self._total += 1
            if self._total > self.max_visible or history_id in self._message_seen:
                return False
            self._message_seen.add(history_id)
            self._message_ids.append(history_id)
            return True

    def record_finding(self, alert_id: int) -> bool:
        """Retain a finding id. Returns False if it was already recorded."""
        with self._lock:
            if alert_id in self._alert_ids:
                return False
            self._alert_ids[alert_id] = None
            return True

    def snapshot_message_ids(self) -> tuple[int, ...]:
        with self._lock:
            return tuple(self._message_ids)

    def snapshot_alert_ids(self) -> tuple[int, ...]:
        with self._lock:
            return tuple(self._alert_ids)

    @property
    def total_observed(self) -> int:
        with self._lock:
            return self._total

    def reset(self) -> None:
        """Forget everything recorded so far."""
        with self._lock:
            self._total = 0
            self._message_ids.clear()
            self._message_seen.clear()
            self._alert_ids.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._message_ids)
