"""Discovery of installed scan checks and binding them to the policy."""

import logging
from collections.abc import Iterable
from importlib.metadata import entry_points

from scanctl.modules.policy.store import PolicyStore

from .base import ScanCheck

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "scanctl.checks"


def load_entry_point_checks(group: str = ENTRY_POINT_GROUP) -> list[ScanCheck]:
    """Instantiate every check advertised under the entry point group.

    A check that fails to load is logged and skipped.
    """
    checks: list[ScanCheck] = []
    for entry_point in entry_points(group=group):
        try:
            factory = entry_point.load()
            check = factory()
        except Exception as exc:
            logger.warning("Failed to load scan check %s: %s", entry_point.name, exc)
            continue
        if not isinstance(check, ScanCheck):
            logger.warning("Entry point %s is not a ScanCheck, ignoring", entry_point.name)
            continue
        checks.append(check)
    return checks


def bind_checks(store: PolicyStore, checks: Iterable[ScanCheck]) -> list[ScanCheck]:
    """Attach checks to the plugins with matching ids.

    Returns the checks that had no plugin to bind to.
    """
    unbound: list[ScanCheck] = []
    for check in checks:
        plugin = store.get(check.plugin_id)
        if plugin is None:
            logger.warning("No scanner with id %d for check %r", check.plugin_id, check)
            unbound.append(check)
            continue
        plugin.check = check
    return unbound
