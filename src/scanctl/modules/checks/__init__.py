"""Scan check contract, the records checks produce, and check discovery."""

from .base import CheckContext, CheckReporter, ScanCheck
from .factory import ENTRY_POINT_GROUP, bind_checks, load_entry_point_checks
from .models import UNSAVED_ALERT_ID, Alert, Exchange

__all__ = [
    "Alert",
    "CheckContext",
    "CheckReporter",
    "ENTRY_POINT_GROUP",
    "Exchange",
    "ScanCheck",
    "UNSAVED_ALERT_ID",
    "bind_checks",
    "load_entry_point_checks",
]
