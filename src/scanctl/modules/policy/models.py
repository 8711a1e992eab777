"""Data models for scanner plugins and policy categories."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, NewType

if TYPE_CHECKING:
    from scanctl.modules.checks.base import ScanCheck

PluginId = NewType("PluginId", int)
PolicyId = NewType("PolicyId", int)


class AttackStrength(Enum):
    """How aggressively a plugin probes a target."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    INSANE = "INSANE"
    DEFAULT = "DEFAULT"


class AlertThreshold(Enum):
    """Confidence required before a plugin reports a finding. OFF disables the plugin."""

    OFF = "OFF"
    DEFAULT = "DEFAULT"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Category(IntEnum):
    """Fixed set of policy categories a plugin can belong to."""

    INFO_GATHER = 0
    BROWSER = 1
    SERVER = 2
    MISC = 3
    INJECTION = 4

    @property
    def display_name(self) -> str:
        return CATEGORY_NAMES[self]


CATEGORY_NAMES: dict[Category, str] = {
    Category.INFO_GATHER: "Information Gathering",
    Category.BROWSER: "Client Browser",
    Category.SERVER: "Server Security",
    Category.MISC: "Miscellaneous",
    Category.INJECTION: "Injection",
}


class _Mixed:
    """Sentinel for a category whose plugins disagree on a setting."""

    _instance: _Mixed | None = None

    def __new__(cls) -> _Mixed:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MIXED"

    def __bool__(self) -> bool:
        return False


MIXED = _Mixed()


def parse_attack_strength(value: str | AttackStrength) -> AttackStrength:
    """Parse an attack strength name case-insensitively.

    Raises:
        ValueError: if the name is not a member of ``AttackStrength``.
    """
    if isinstance(value, AttackStrength):
        return value
    name = str(value).strip().upper()
    try:
        return AttackStrength[name]
    except KeyError:
        raise ValueError(f"Unknown attack strength: {value!r}") from None


def parse_alert_threshold(value: str | AlertThreshold) -> AlertThreshold:
    """Parse an alert threshold name case-insensitively.

    Raises:
        ValueError: if the name is not a member of ``AlertThreshold``.
    """
    if isinstance(value, AlertThreshold):
        return value
    name = str(value).strip().upper()
    try:
        return AlertThreshold[name]
    except KeyError:
        raise ValueError(f"Unknown alert threshold: {value!r}") from None


@dataclass
class ScannerPlugin:
    """Configuration of one scan check, plus the implementation bound to it."""

    id: PluginId
    name: str
    category: PolicyId
    enabled: bool = True
    attack_strength: AttackStrength = AttackStrength.DEFAULT
    alert_threshold: AlertThreshold = AlertThreshold.DEFAULT
    dependencies: tuple[PluginId, ...] = ()
    cwe_id: int = 0
    wasc_id: int = 0
    check: ScanCheck | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        # An OFF threshold never alerts, so the plugin cannot be enabled.
        if self.alert_threshold is AlertThreshold.OFF:
            self.enabled = False
