"""Records produced by scan checks: exchanges sent and alerts raised."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

UNSAVED_ALERT_ID = -1


@dataclass
class Exchange:
    """One HTTP request/response pair observed by a scan check."""

    method: str = "GET"
    url: str = ""
    status_code: int = 0
    history_id: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class Alert:
    """A finding raised by a scan check."""

    plugin_id: int
    name: str
    url: str = ""
    risk: str = "medium"
    confidence: str = "medium"
    param: str = ""
    evidence: str = ""
    cwe_id: int = 0
    wasc_id: int = 0
    alert_id: int = UNSAVED_ALERT_ID
