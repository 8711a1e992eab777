"""Data models for active scans."""

from dataclasses import dataclass
from enum import Enum

DEFAULT_MAX_RESULTS_TO_LIST = 100


class ScanState(Enum):
    """Lifecycle state of one scan."""

    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"


@dataclass(frozen=True)
class ScanOptions:
    """Per-scan settings chosen when the scan is created."""

    recurse: bool = True
    in_scope_only: bool = False
    max_results_to_list: int = DEFAULT_MAX_RESULTS_TO_LIST
