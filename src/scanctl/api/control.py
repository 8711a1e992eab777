"""Synchronous control plane for active scans and scanner policy."""

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit

from sqlalchemy.exc import SQLAlchemyError

from scanctl.modules.policy import (
    MIXED,
    PluginSnapshot,
    PolicyStore,
    ScannerPlugin,
    UnknownCategoryError,
    UnknownPluginError,
    parse_alert_threshold,
    parse_attack_strength,
)
from scanctl.modules.registry import ScanRegistry
from scanctl.modules.scan import DEFAULT_MAX_RESULTS_TO_LIST, ActiveScan, ScanOptions
from scanctl.modules.session import SessionManager
from scanctl.utils.debug import debug_api_call

from .endpoints import ApiAction, ApiEndpoint, ApiView, get_bool, get_ids, get_int
from .errors import (
    ApiError,
    BadFormat,
    DoesNotExist,
    InternalError,
    UnknownAction,
    UnknownView,
    UrlNotFound,
)

logger = logging.getLogger(__name__)

PREFIX = "ascan"
OK = "OK"

_VALUE_ALIASES = {"attackStrength": "value", "alertThreshold": "value"}

ACTIONS: tuple[ApiAction, ...] = (
    ApiAction("scan", ("url",), ("recurse", "inScopeOnly")),
    ApiAction("pause", (), ("scanId",)),
    ApiAction("resume", (), ("scanId",)),
    ApiAction("stop", (), ("scanId",)),
    ApiAction("removeScan", ("scanId",)),
    ApiAction("pauseAll"),
    ApiAction("resumeAll"),
    ApiAction("stopAll"),
    ApiAction("removeAll"),
    ApiAction("excludeFromScan", ("regex",)),
    ApiAction("clearExcluded"),
    ApiAction("enableAllScanners"),
    ApiAction("disableAllScanners"),
    ApiAction("enableScanners", ("ids",)),
    ApiAction("disableScanners", ("ids",)),
    ApiAction("setEnabledPolicies", ("ids",)),
    ApiAction("setPolicyAttackStrength", ("id", "value"), param_aliases=_VALUE_ALIASES),
    ApiAction("setPolicyAlertThreshold", ("id", "value"), param_aliases=_VALUE_ALIASES),
    ApiAction("setScannerAttackStrength", ("id", "value"), param_aliases=_VALUE_ALIASES),
    ApiAction("setScannerAlertThreshold", ("id", "value"), param_aliases=_VALUE_ALIASES),
)

VIEWS: tuple[ApiView, ...] = (
    ApiView("status", (), ("scanId",)),
    ApiView("scans"),
    ApiView("messagesIds", ("scanId",)),
    ApiView("alertsIds", ("scanId",)),
    ApiView("excludedFromScan"),
    ApiView("scanners", (), ("policyId",)),
    ApiView("policies"),
)

# Older wire names still accepted by ``handle_action``.
ACTION_ALIASES: dict[str, str] = {
    "pauseAllScans": "pauseAll",
    "resumeAllScans": "resumeAll",
    "stopAllScans": "stopAll",
    "removeAllScans": "removeAll",
    "clearExcludedFromScan": "clearExcluded",
}

POLICY_ACTIONS = frozenset(
    {
        "enableAllScanners",
        "disableAllScanners",
        "enableScanners",
        "disableScanners",
        "setEnabledPolicies",
        "setPolicyAttackStrength",
        "setPolicyAlertThreshold",
        "setScannerAttackStrength",
        "setScannerAlertThreshold",
    }
)


class ControlAPI:
    """Dispatches named actions and views onto the registry, policy and session.

    Every call validates its parameters before touching any state, and failures
    are raised as ``ApiError`` subclasses. Results are plain Python values.
    """

    prefix = PREFIX

    def __init__(
        self,
        registry: ScanRegistry,
        policy: PolicyStore,
        session: SessionManager,
        max_results_to_list: int = DEFAULT_MAX_RESULTS_TO_LIST,
        on_policy_change: Callable[[PolicyStore], None] | None = None,
    ):
        self.registry = registry
        self.policy = policy
        self.session = session
        self.max_results_to_list = max_results_to_list
        self._on_policy_change = on_policy_change
        self._actions: dict[str, tuple[ApiAction, Callable[[dict[str, Any]], Any]]] = {
            action.name: (action, getattr(self, f"_action_{action.name}")) for action in ACTIONS
        }
        self._views: dict[str, tuple[ApiView, Callable[[dict[str, Any]], Any]]] = {
            view.name: (view, getattr(self, f"_view_{view.name}")) for view in VIEWS
        }

    # -- dispatch -----------------------------------------------------------

    def handle_action(self, name: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run an action. Returns ``OK``, or the new scan id for ``scan``."""
        name = ACTION_ALIASES.get(name, name)
        entry = self._actions.get(name)
        if entry is None:
            raise UnknownAction(name)
        result = self._dispatch("action", *entry, params)
        if name in POLICY_ACTIONS and self._on_policy_change is not None:
            self._on_policy_change(self.policy)
        return result

    def handle_view(self, name: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a read-only view and return its plain value."""
        entry = self._views.get(name)
        if entry is None:
            raise UnknownView(name)
        return self._dispatch("view", *entry, params)

    def _dispatch(
        self,
        kind: str,
        endpoint: ApiEndpoint,
        handler: Callable[[dict[str, Any]], Any],
        params: Mapping[str, Any] | None,
    ) -> Any:
        values = endpoint.normalize(params)
        debug_api_call(kind, endpoint.name, values, start=True)
        start_time = time.time()
        try:
            endpoint.validate(values)
            result = handler(values)
        except ApiError as exc:
            debug_api_call(
                kind,
                endpoint.name,
                values,
                start=False,
                elapsed=time.time() - start_time,
                error=str(exc),
            )
            logger.debug("%s %s/%s rejected: %s", kind, PREFIX, endpoint.name, exc)
            raise
        except SQLAlchemyError as exc:
            logger.error("%s %s/%s failed: %s", kind, PREFIX, endpoint.name, exc)
            raise InternalError(str(exc)) from exc
        debug_api_call(
            kind,
            endpoint.name,
            values,
            start=False,
            elapsed=time.time() - start_time,
            result=result,
        )
        return result

    def describe(self) -> dict[str, Any]:
        """List every action and view with its mandatory and optional params."""
        return {
            "prefix": PREFIX,
            "actions": [action.describe() for action in ACTIONS],
            "views": [view.describe() for view in VIEWS],
        }

    def reset(self) -> None:
        """Stop and discard every scan."""
        self.registry.remove_all()

    # -- helpers --------------------------------------------------------------

    def _get_scan(self, params: dict[str, Any]) -> ActiveScan:
        scan_id = get_int(params, "scanId")
        if scan_id is None:
            scan = self.registry.get_last()
        else:
            scan = self.registry.get(scan_id)
        if scan is None:
            raise DoesNotExist("scanId")
        return scan

    @staticmethod
    def _get_policy_id(params: dict[str, Any], name: str) -> int:
        policy_id = get_int(params, name)
        if policy_id is None or not PolicyStore.has_category(policy_id):
            raise DoesNotExist(name)
        return policy_id

    def _get_plugin(self, params: dict[str, Any]) -> ScannerPlugin:
        plugin = self.policy.get(get_int(params, "id"))
        if plugin is None:
            raise DoesNotExist("id")
        return plugin

    @staticmethod
    def _parse_strength(params: dict[str, Any]):
        try:
            return parse_attack_strength(params["value"])
        except ValueError:
            raise DoesNotExist("value") from None

    @staticmethod
    def _parse_threshold(params: dict[str, Any]):
        try:
            return parse_alert_threshold(params["value"])
        except ValueError:
            raise DoesNotExist("value") from None

    # -- scan actions -----------------------------------------------------------

    def _action_scan(self, params: dict[str, Any]) -> int:
        url = str(params["url"]).strip()
        recurse = get_bool(params, "recurse", True)
        in_scope_only = get_bool(params, "inScopeOnly", False)
        site_tree = self.registry.site_tree
        node = site_tree.find_node(url) if site_tree is not None else None
        if node is None:
            raise UrlNotFound(url)
        options = ScanOptions(
            recurse=recurse,
            in_scope_only=in_scope_only,
            max_results_to_list=self.max_results_to_list,
        )
        scan = self.registry.create_scan(urlsplit(url).netloc, options, start_node=node)
        return scan.id

    def _action_pause(self, params: dict[str, Any]) -> str:
        self._get_scan(params).pause()
        return OK

    def _action_resume(self, params: dict[str, Any]) -> str:
        self._get_scan(params).resume()
        return OK

    def _action_stop(self, params: dict[str, Any]) -> str:
        self._get_scan(params).stop()
        return OK

    def _action_removeScan(self, params: dict[str, Any]) -> str:
        if self.registry.remove(get_int(params, "scanId")) is None:
            raise DoesNotExist("scanId")
        return OK

    def _action_pauseAll(self, params: dict[str, Any]) -> str:
        self.registry.pause_all()
        return OK

    def _action_resumeAll(self, params: dict[str, Any]) -> str:
        self.registry.resume_all()
        return OK

    def _action_stopAll(self, params: dict[str, Any]) -> str:
        self.registry.stop_all()
        return OK

    def _action_removeAll(self, params: dict[str, Any]) -> str:
        self.registry.remove_all()
        return OK

    # -- exclusions ----------------------------------------------------------------

    def _action_excludeFromScan(self, params: dict[str, Any]) -> str:
        try:
            self.session.add_excluded_regex(str(params["regex"]))
        except ValueError:
            raise BadFormat("regex") from None
        return OK

    def _action_clearExcluded(self, params: dict[str, Any]) -> str:
        self.session.clear_excluded_regexes()
        return OK

    # -- policy actions -------------------------------------------------------------

    def _action_enableAllScanners(self, params: dict[str, Any]) -> str:
        self.policy.set_all_enabled(True)
        return OK

    def _action_disableAllScanners(self, params: dict[str, Any]) -> str:
        self.policy.set_all_enabled(False)
        return OK

    def _set_scanners_enabled(self, params: dict[str, Any], enabled: bool) -> str:
        ids = get_ids(params, "ids")
        try:
            self.policy.set_enabled_many(ids, enabled)
        except UnknownPluginError:
            raise DoesNotExist("ids") from None
        return OK

    def _action_enableScanners(self, params: dict[str, Any]) -> str:
        return self._set_scanners_enabled(params, True)

    def _action_disableScanners(self, params: dict[str, Any]) -> str:
        return self._set_scanners_enabled(params, False)

    def _action_setEnabledPolicies(self, params: dict[str, Any]) -> str:
        ids = get_ids(params, "ids")
        try:
            self.policy.set_enabled_categories(ids)
        except UnknownCategoryError:
            raise DoesNotExist("ids") from None
        return OK

    def _action_setPolicyAttackStrength(self, params: dict[str, Any]) -> str:
        policy_id = self._get_policy_id(params, "id")
        self.policy.set_category_attack_strength(policy_id, self._parse_strength(params))
        return OK

    def _action_setPolicyAlertThreshold(self, params: dict[str, Any]) -> str:
        policy_id = self._get_policy_id(params, "id")
        self.policy.set_category_alert_threshold(policy_id, self._parse_threshold(params))
        return OK

    def _action_setScannerAttackStrength(self, params: dict[str, Any]) -> str:
        plugin = self._get_plugin(params)
        self.policy.set_attack_strength(plugin.id, self._parse_strength(params))
        return OK

    def _action_setScannerAlertThreshold(self, params: dict[str, Any]) -> str:
        plugin = self._get_plugin(params)
        self.policy.set_alert_threshold(plugin.id, self._parse_threshold(params))
        return OK

    # -- views ------------------------------------------------------------------------

    def _view_status(self, params: dict[str, Any]) -> int:
        return self._get_scan(params).progress

    def _view_scans(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            {"id": scan.id, "progress": scan.progress, "state": scan.state.value}
            for scan in self.registry.all_scans()
        ]

    def _view_messagesIds(self, params: dict[str, Any]) -> list[int]:
        return list(self._get_scan(params).message_ids())

    def _view_alertsIds(self, params: dict[str, Any]) -> list[int]:
        return list(self._get_scan(params).alert_ids())

    def _view_excludedFromScan(self, params: dict[str, Any]) -> list[str]:
        return self.session.get_excluded_regexes()

    def _view_scanners(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        policy_id = None
        if get_int(params, "policyId") is not None:
            policy_id = self._get_policy_id(params, "policyId")
        return [_describe_plugin(entry) for entry in self.policy.snapshot(policy_id)]

    def _view_policies(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            {
                "id": int(entry.category),
                "name": entry.category.display_name,
                "attackStrength": _aggregate_value(entry.attack_strength),
                "alertThreshold": _aggregate_value(entry.alert_threshold),
                "enabled": entry.enabled,
            }
            for entry in self.policy.category_snapshots()
        ]


def _describe_plugin(entry: PluginSnapshot) -> dict[str, Any]:
    plugin = entry.plugin
    return {
        "id": plugin.id,
        "name": plugin.name,
        "cweId": plugin.cwe_id,
        "wascId": plugin.wasc_id,
        "attackStrength": entry.attack_strength.value,
        "alertThreshold": entry.alert_threshold.value,
        "policyId": int(plugin.category),
        "enabled": plugin.enabled,
        "allDependenciesAvailable": entry.dependencies_available,
        "dependencies": list(plugin.dependencies),
    }


def _aggregate_value(value) -> str:
    # Mixed and empty categories both render as an empty string.
    if value is None or value is MIXED:
        return ""
    return value.value
