"""Wires the policy, site tree, history, session and registry into a ControlAPI."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from scanctl.api import ControlAPI
from scanctl.config import (
    get_catalog_path,
    get_db_path,
    get_default_alert_threshold,
    get_default_attack_strength,
    get_max_results_to_list,
)
from scanctl.db.init import init_db
from scanctl.modules.checks import ScanCheck, bind_checks, load_entry_point_checks
from scanctl.modules.history import InMemoryHistoryStore
from scanctl.modules.policy import PolicyStore, load_catalog, save_catalog
from scanctl.modules.registry import ScanRegistry
from scanctl.modules.scan import NotificationSink
from scanctl.modules.session import SessionManager
from scanctl.modules.sitetree import InMemorySiteTree

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """Everything one process needs to run and control scans."""

    policy: PolicyStore
    site_tree: InMemorySiteTree
    history: InMemoryHistoryStore
    session: SessionManager
    registry: ScanRegistry
    api: ControlAPI
    catalog_path: Path | None = None

    def close(self) -> None:
        self.registry.remove_all()
        self.session.close()


def build_engine(
    project_dir: Path | None = None,
    db_path: Path | None = None,
    catalog_path: Path | None = None,
    checks: Iterable[ScanCheck] | None = None,
    sink: NotificationSink | None = None,
    persist_policy: bool = False,
) -> Engine:
    """Construct the process-wide collaborators and hand them to each other.

    ``checks`` defaults to the checks installed under the ``scanctl.checks``
    entry point group. With ``persist_policy`` every policy-changing action is
    saved back to the catalog file.
    """
    db_path = db_path or get_db_path(project_dir)
    catalog_path = catalog_path or get_catalog_path(project_dir)

    policy = load_catalog(catalog_path)
    if not catalog_path.exists():
        policy.default_attack_strength = get_default_attack_strength(project_dir)
        policy.default_alert_threshold = get_default_alert_threshold(project_dir)

    unbound = bind_checks(policy, load_entry_point_checks() if checks is None else checks)
    if unbound:
        logger.warning("%d scan check(s) have no matching scanner", len(unbound))

    init_db(db_path)
    session = SessionManager(db_path)
    site_tree = InMemorySiteTree()
    history = InMemoryHistoryStore()
    registry = ScanRegistry(
        policy,
        site_tree=site_tree,
        history=history,
        is_excluded=session.is_excluded,
        sink=sink,
    )

    def _save(store: PolicyStore) -> None:
        save_catalog(store, catalog_path)
        logger.debug("Saved policy to %s", catalog_path)

    api = ControlAPI(
        registry,
        policy,
        session,
        max_results_to_list=get_max_results_to_list(project_dir),
        on_policy_change=_save if persist_policy else None,
    )
    return Engine(
        policy=policy,
        site_tree=site_tree,
        history=history,
        session=session,
        registry=registry,
        api=api,
        catalog_path=catalog_path,
    )
