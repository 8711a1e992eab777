"""Scanner policy model: plugins, categories, strengths and thresholds."""

from .catalog import builtin_plugins, load_catalog, save_catalog
from .models import (
    CATEGORY_NAMES,
    MIXED,
    AlertThreshold,
    AttackStrength,
    Category,
    PluginId,
    PolicyId,
    ScannerPlugin,
    parse_alert_threshold,
    parse_attack_strength,
)
from .store import (
    CategorySnapshot,
    PluginSnapshot,
    PolicyStore,
    UnknownCategoryError,
    UnknownPluginError,
)

__all__ = [
    "AlertThreshold",
    "AttackStrength",
    "CATEGORY_NAMES",
    "Category",
    "CategorySnapshot",
    "MIXED",
    "PluginId",
    "PluginSnapshot",
    "PolicyId",
    "PolicyStore",
    "ScannerPlugin",
    "UnknownCategoryError",
    "UnknownPluginError",
    "builtin_plugins",
    "load_catalog",
    "parse_alert_threshold",
    "parse_attack_strength",
    "save_catalog",
]
