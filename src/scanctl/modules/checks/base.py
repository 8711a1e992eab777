"""Base contract for pluggable scan checks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from scanctl.modules.policy.models import AlertThreshold, AttackStrength

from .models import Alert, Exchange

if TYPE_CHECKING:
    from scanctl.modules.sitetree import SiteNode


class CheckReporter(Protocol):
    """Callbacks a check uses to report what it observed."""

    def notify_new_message(self, exchange: Exchange) -> None: ...

    def alert_found(self, alert: Alert) -> None: ...

    def is_stopped(self) -> bool: ...


@dataclass(frozen=True)
class CheckContext:
    """Settings in effect for one check run, plus the reporter to call back."""

    reporter: CheckReporter
    attack_strength: AttackStrength
    alert_threshold: AlertThreshold

    def record(self, exchange: Exchange) -> None:
        """Report an exchange the check sent."""
        self.reporter.notify_new_message(exchange)

    def raise_alert(self, alert: Alert) -> None:
        """Report a finding."""
        self.reporter.alert_found(alert)

    @property
    def stopped(self) -> bool:
        """True once the scan was asked to stop; long checks should return early."""
        return self.reporter.is_stopped()


class ScanCheck(ABC):
    """One vulnerability check, bound to a scanner plugin id in the policy."""

    plugin_id: int

    @abstractmethod
    def scan(self, node: SiteNode, context: CheckContext) -> None:
        """Run the check against one site node."""
