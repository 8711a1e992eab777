"""Built-in scanner catalog and YAML persistence of policy settings."""

import logging
from pathlib import Path
from typing import Any

import yaml

from .models import (
    AlertThreshold,
    AttackStrength,
    Category,
    PluginId,
    PolicyId,
    ScannerPlugin,
    parse_alert_threshold,
    parse_attack_strength,
)
from .store import PolicyStore

logger = logging.getLogger(__name__)

# (id, name, category, cwe, wasc, dependencies)
BUILTIN_SCANNERS: list[tuple[int, str, Category, int, int, tuple[int, ...]]] = [
    (0, "Directory Browsing", Category.SERVER, 548, 48, ()),
    (6, "Path Traversal", Category.SERVER, 22, 33, ()),
    (7, "Remote File Inclusion", Category.SERVER, 98, 5, ()),
    (10045, "Source Code Disclosure - /WEB-INF folder", Category.INFO_GATHER, 541, 34, ()),
    (20012, "Anti CSRF Tokens Scanner", Category.BROWSER, 352, 9, ()),
    (20015, "Heartbleed OpenSSL Vulnerability", Category.SERVER, 119, 20, ()),
    (20019, "External Redirect", Category.BROWSER, 601, 38, ()),
    (30001, "Buffer Overflow", Category.MISC, 120, 7, ()),
    (30002, "Format String Error", Category.MISC, 134, 6, ()),
    (40003, "CRLF Injection", Category.INJECTION, 113, 25, ()),
    (40012, "Cross Site Scripting (Reflected)", Category.INJECTION, 79, 8, ()),
    (40014, "Cross Site Scripting (Persistent)", Category.INJECTION, 79, 8, (40016, 40017)),
    (40016, "Cross Site Scripting (Persistent) - Prime", Category.INJECTION, 79, 8, ()),
    (40017, "Cross Site Scripting (Persistent) - Spider", Category.INJECTION, 79, 8, ()),
    (40018, "SQL Injection", Category.INJECTION, 89, 19, ()),
    (90019, "Server Side Code Injection", Category.INJECTION, 94, 20, ()),
    (90020, "Remote OS Command Injection", Category.INJECTION, 78, 31, ()),
    (90023, "XML External Entity Attack", Category.INJECTION, 611, 43, ()),
]


def builtin_plugins() -> list[ScannerPlugin]:
    """Return fresh plugin records for the built-in catalog, all at DEFAULT settings."""
    return [
        ScannerPlugin(
            id=PluginId(plugin_id),
            name=name,
            category=PolicyId(int(category)),
            cwe_id=cwe_id,
            wasc_id=wasc_id,
            dependencies=tuple(PluginId(dep) for dep in dependencies),
        )
        for plugin_id, name, category, cwe_id, wasc_id, dependencies in BUILTIN_SCANNERS
    ]


def plugin_to_dict(plugin: ScannerPlugin) -> dict[str, Any]:
    return {
        "id": int(plugin.id),
        "name": plugin.name,
        "policy": int(plugin.category),
        "enabled": plugin.enabled,
        "attack_strength": plugin.attack_strength.value,
        "alert_threshold": plugin.alert_threshold.value,
        "dependencies": [int(dep) for dep in plugin.dependencies],
        "cwe_id": plugin.cwe_id,
        "wasc_id": plugin.wasc_id,
    }


def plugin_from_dict(data: dict[str, Any]) -> ScannerPlugin:
    """Build a plugin record from one catalog entry.

    Raises:
        ValueError: if a required field is missing or a setting is not recognised.
    """
    try:
        plugin_id = int(data["id"])
        name = str(data["name"])
        category = int(data["policy"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid scanner entry {data!r}: {exc}") from exc
    if not PolicyStore.has_category(category):
        raise ValueError(f"Scanner {plugin_id} has unknown policy {category}")
    return ScannerPlugin(
        id=PluginId(plugin_id),
        name=name,
        category=PolicyId(category),
        enabled=bool(data.get("enabled", True)),
        attack_strength=parse_attack_strength(data.get("attack_strength", "DEFAULT")),
        alert_threshold=parse_alert_threshold(data.get("alert_threshold", "DEFAULT")),
        dependencies=tuple(PluginId(int(dep)) for dep in data.get("dependencies") or ()),
        cwe_id=int(data.get("cwe_id", 0)),
        wasc_id=int(data.get("wasc_id", 0)),
    )


def load_catalog(path: Path | None) -> PolicyStore:
    """Load a policy store from a YAML catalog, falling back to the built-in catalog."""
    if path is None or not path.exists():
        return PolicyStore(builtin_plugins())

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    defaults = data.get("defaults") or {}
    store = PolicyStore(
        default_attack_strength=parse_attack_strength(
            defaults.get("attack_strength", AttackStrength.MEDIUM.value)
        ),
        default_alert_threshold=parse_alert_threshold(
            defaults.get("alert_threshold", AlertThreshold.MEDIUM.value)
        ),
    )
    for entry in data.get("scanners") or []:
        store.register(plugin_from_dict(entry))
    logger.debug("Loaded %d scanners from %s", len(store.plugins()), path)
    return store


def save_catalog(store: PolicyStore, path: Path) -> Path:
    """Write the store's plugins and defaults to a YAML catalog."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "defaults": {
            "attack_strength": store.default_attack_strength.value,
            "alert_threshold": store.default_alert_threshold.value,
        },
        "scanners": [plugin_to_dict(entry.plugin) for entry in store.snapshot()],
    }
    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return path
