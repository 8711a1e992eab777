"""Active scan lifecycle, worker, listeners and notification delivery."""

from .active_scan import ActiveScan
from .listeners import ScanListener
from .models import DEFAULT_MAX_RESULTS_TO_LIST, ScanOptions, ScanState
from .notify import ContextSink, ImmediateSink, NotificationSink
from .worker import ScanWorker

__all__ = [
    "ActiveScan",
    "ContextSink",
    "DEFAULT_MAX_RESULTS_TO_LIST",
    "ImmediateSink",
    "NotificationSink",
    "ScanListener",
    "ScanOptions",
    "ScanState",
    "ScanWorker",
]
