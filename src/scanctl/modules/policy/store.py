"""Process-wide scanner policy shared by every scan."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace

from .models import (
    MIXED,
    AlertThreshold,
    AttackStrength,
    Category,
    PluginId,
    PolicyId,
    ScannerPlugin,
    _Mixed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PluginSnapshot:
    """A detached copy of one plugin plus the settings it resolves to."""

    plugin: ScannerPlugin
    attack_strength: AttackStrength
    alert_threshold: AlertThreshold
    dependencies_available: bool


@dataclass(frozen=True)
class CategorySnapshot:
    """Aggregate settings of one category. ``None`` means the category is empty."""

    category: Category
    attack_strength: AttackStrength | _Mixed | None
    alert_threshold: AlertThreshold | _Mixed | None
    enabled: bool


class UnknownPluginError(LookupError):
    """Raised when a plugin id is not registered in the store."""

    def __init__(self, plugin_ids: Iterable[int]):
        self.plugin_ids = sorted(set(plugin_ids))
        super().__init__(f"Unknown scanner id(s): {', '.join(map(str, self.plugin_ids))}")


class UnknownCategoryError(LookupError):
    """Raised when a category id is not one of the known policy categories."""

    def __init__(self, category_ids: Iterable[int]):
        self.category_ids = sorted(set(category_ids))
        super().__init__(f"Unknown policy id(s): {', '.join(map(str, self.category_ids))}")


class PolicyStore:
    """Holds every scanner plugin with its category, strength, threshold and dependencies.

    All reads and writes go through one re-entrant lock, so bulk operations such as
    ``set_enabled_categories`` are observed atomically by concurrent callers.
    """

    def __init__(
        self,
        plugins: Iterable[ScannerPlugin] | None = None,
        default_attack_strength: AttackStrength = AttackStrength.MEDIUM,
        default_alert_threshold: AlertThreshold = AlertThreshold.MEDIUM,
    ):
        if default_attack_strength is AttackStrength.DEFAULT:
            raise ValueError("default_attack_strength must be a concrete strength")
        if default_alert_threshold in (AlertThreshold.DEFAULT, AlertThreshold.OFF):
            raise ValueError("default_alert_threshold must be a concrete threshold")
        self._lock = threading.RLock()
        self._plugins: dict[PluginId, ScannerPlugin] = {}
        self.default_attack_strength = default_attack_strength
        self.default_alert_threshold = default_alert_threshold
        for plugin in plugins or []:
            self.register(plugin)

    # -- registration and lookup ------------------------------------------

    def register(self, plugin: ScannerPlugin) -> None:
        """Register or replace a plugin by id."""
        with self._lock:
            self._plugins[plugin.id] = plugin

    def get(self, plugin_id: int) -> ScannerPlugin | None:
        with self._lock:
            return self._plugins.get(PluginId(plugin_id))

    def require(self, plugin_id: int) -> ScannerPlugin:
        """Return the plugin or raise ``UnknownPluginError``."""
        plugin = self.get(plugin_id)
        if plugin is None:
            raise UnknownPluginError([plugin_id])
        return plugin

    def plugins(self, category_id: int | None = None) -> list[ScannerPlugin]:
        """Return registered plugins sorted by id, optionally filtered by category."""
        with self._lock:
            selected = [
                plugin
                for plugin in self._plugins.values()
                if category_id is None or plugin.category == category_id
            ]
        return sorted(selected, key=lambda plugin: plugin.id)

    def snapshot(self, category_id: int | None = None) -> list[PluginSnapshot]:
        """Return copies of the plugins with their settings resolved, taken under one lock.

        Readers that report or persist the policy use this so they never see a
        concurrent writer halfway through an update.
        """
        with self._lock:
            return [
                PluginSnapshot(
                    plugin=replace(plugin),
                    attack_strength=self.effective_attack_strength(plugin),
                    alert_threshold=self.effective_alert_threshold(plugin),
                    dependencies_available=self.all_dependencies_available(plugin.id),
                )
                for plugin in self.plugins(category_id)
            ]

    def category_snapshots(self) -> list[CategorySnapshot]:
        """Return every category's aggregate settings, taken under one lock."""
        with self._lock:
            return [
                CategorySnapshot(
                    category=category,
                    attack_strength=self.aggregate_attack_strength(category),
                    alert_threshold=self.aggregate_alert_threshold(category),
                    enabled=self.is_category_fully_enabled(category),
                )
                for category in Category
            ]

    @staticmethod
    def has_category(category_id: int) -> bool:
        return category_id in Category._value2member_map_

    @staticmethod
    def categories() -> list[Category]:
        return list(Category)

    def _require_categories(self, category_ids: Iterable[int]) -> list[PolicyId]:
        ids = [PolicyId(int(category_id)) for category_id in category_ids]
        unknown = [category_id for category_id in ids if not self.has_category(category_id)]
        if unknown:
            raise UnknownCategoryError(unknown)
        return ids

    # -- enabling ---------------------------------------------------------

    @staticmethod
    def _apply_enabled(plugin: ScannerPlugin, enabled: bool) -> None:
        plugin.enabled = enabled
        if enabled and plugin.alert_threshold is AlertThreshold.OFF:
            plugin.alert_threshold = AlertThreshold.DEFAULT

    def set_all_enabled(self, enabled: bool) -> None:
        """Set every plugin's enabled flag identically."""
        with self._lock:
            for plugin in self._plugins.values():
                self._apply_enabled(plugin, enabled)
        logger.info("All scanners %s", "enabled" if enabled else "disabled")

    def set_enabled(self, plugin_id: int, enabled: bool) -> None:
        """Enable or disable one plugin. Enabling an OFF plugin raises its threshold to DEFAULT."""
        with self._lock:
            self._apply_enabled(self.require(plugin_id), enabled)

    def set_enabled_many(self, plugin_ids: Iterable[int], enabled: bool) -> None:
        """Enable or disable several plugins; nothing changes if any id is unknown."""
        ids = list(plugin_ids)
        with self._lock:
            unknown = [plugin_id for plugin_id in ids if PluginId(plugin_id) not in self._plugins]
            if unknown:
                raise UnknownPluginError(unknown)
            for plugin_id in ids:
                self._apply_enabled(self._plugins[PluginId(plugin_id)], enabled)

    def set_enabled_categories(self, category_ids: Iterable[int]) -> None:
        """Disable every plugin, then enable exactly those in the given categories.

        Unknown category ids are rejected before anything is changed.
        """
        with self._lock:
            selected = set(self._require_categories(category_ids))
            for plugin in self._plugins.values():
                self._apply_enabled(plugin, False)
            for plugin in self._plugins.values():
                if plugin.category in selected:
                    self._apply_enabled(plugin, True)
        logger.info("Enabled policies set to %s", sorted(selected))

    # -- strength and threshold --------------------------------------------

    def set_attack_strength(self, plugin_id: int, strength: AttackStrength) -> None:
        with self._lock:
            self.require(plugin_id).attack_strength = strength

    def set_category_attack_strength(self, category_id: int, strength: AttackStrength) -> None:
        """Apply an attack strength to every plugin in a category."""
        with self._lock:
            (category,) = self._require_categories([category_id])
            for plugin in self._plugins.values():
                if plugin.category == category:
                    plugin.attack_strength = strength

    @staticmethod
    def _apply_threshold(plugin: ScannerPlugin, threshold: AlertThreshold) -> None:
        # The threshold is authoritative for the enabled flag.
        plugin.alert_threshold = threshold
        plugin.enabled = threshold is not AlertThreshold.OFF

    def set_alert_threshold(self, plugin_id: int, threshold: AlertThreshold) -> None:
        with self._lock:
            self._apply_threshold(self.require(plugin_id), threshold)

    def set_category_alert_threshold(self, category_id: int, threshold: AlertThreshold) -> None:
        """Apply an alert threshold to every plugin in a category."""
        with self._lock:
            (category,) = self._require_categories([category_id])
            for plugin in self._plugins.values():
                if plugin.category == category:
                    self._apply_threshold(plugin, threshold)

    def effective_attack_strength(self, plugin: ScannerPlugin) -> AttackStrength:
        """Resolve DEFAULT to the store-wide default strength."""
        if plugin.attack_strength is AttackStrength.DEFAULT:
            return self.default_attack_strength
        return plugin.attack_strength

    def effective_alert_threshold(self, plugin: ScannerPlugin) -> AlertThreshold:
        """Resolve DEFAULT to the store-wide default threshold."""
        if plugin.alert_threshold is AlertThreshold.DEFAULT:
            return self.default_alert_threshold
        return plugin.alert_threshold

    # -- category aggregates -------------------------------------------------

    def aggregate_attack_strength(self, category_id: int) -> AttackStrength | _Mixed | None:
        """Return the strength shared by every plugin in the category, or ``MIXED``.

        ``None`` means the category holds no plugins.
        """
        with self._lock:
            values = {
                self.effective_attack_strength(plugin) for plugin in self.plugins(category_id)
            }
        return _single_or_mixed(values)

    def aggregate_alert_threshold(self, category_id: int) -> AlertThreshold | _Mixed | None:
        """Return the threshold shared by every plugin in the category, or ``MIXED``."""
        with self._lock:
            values = {
                self.effective_alert_threshold(plugin) for plugin in self.plugins(category_id)
            }
        return _single_or_mixed(values)

    def is_category_fully_enabled(self, category_id: int) -> bool:
        with self._lock:
            return all(plugin.enabled for plugin in self.plugins(category_id))

    # -- dependencies ---------------------------------------------------------

    def list_dependencies(self, plugin_id: int) -> list[PluginId]:
        """Return the ids of the plugin's prerequisites, in declaration order."""
        return list(self.require(plugin_id).dependencies)

    def all_dependencies_available(self, plugin_id: int) -> bool:
        """True when every prerequisite is registered and enabled."""
        with self._lock:
            plugin = self.require(plugin_id)
            for dependency_id in plugin.dependencies:
                dependency = self._plugins.get(dependency_id)
                if dependency is None or not dependency.enabled:
                    return False
            return True

    def runnable_plugins(self) -> list[ScannerPlugin]:
        """Return enabled plugins with a bound check, prerequisites ordered first.

        Plugins whose dependencies are unavailable are left out.
        """
        with self._lock:
            candidates = {
                plugin.id: plugin
                for plugin in self._plugins.values()
                if plugin.enabled
                and plugin.check is not None
                and self.all_dependencies_available(plugin.id)
            }
            ordered: list[ScannerPlugin] = []
            visiting: set[PluginId] = set()
            placed: set[PluginId] = set()

            def visit(plugin: ScannerPlugin) -> None:
                if plugin.id in placed or plugin.id in visiting:
                    if plugin.id in visiting:
                        logger.warning("Dependency cycle involving scanner %d", plugin.id)
                    return
                visiting.add(plugin.id)
                for dependency_id in plugin.dependencies:
                    dependency = candidates.get(dependency_id)
                    if dependency is not None:
                        visit(dependency)
                visiting.discard(plugin.id)
                placed.add(plugin.id)
                ordered.append(plugin)

            for plugin_id in sorted(candidates):
                visit(candidates[plugin_id])
            return ordered


def _single_or_mixed(values: set):
    if not values:
        return None
    if len(values) > 1:
        return MIXED
    return next(iter(values))
