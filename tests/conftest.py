"""Test configuration and fixtures for scanctl."""

import tempfile
import threading
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from scanctl.api import ControlAPI
from scanctl.db.init import init_db
from scanctl.modules.checks import Alert, CheckContext, Exchange, ScanCheck
from scanctl.modules.history import InMemoryHistoryStore
from scanctl.modules.policy import PolicyStore, builtin_plugins
from scanctl.modules.registry import ScanRegistry
from scanctl.modules.scan import ActiveScan, ScanOptions
from scanctl.modules.session import SessionManager
from scanctl.modules.sitetree import InMemorySiteTree, SiteNode

SITE_URLS = [
    "http://example.com/",
    "http://example.com/login",
    "http://example.com/admin/users",
]


class RecordingCheck(ScanCheck):
    """Records one exchange per node and optionally raises an alert for it."""

    def __init__(self, plugin_id: int, raise_alerts: bool = False):
        self.plugin_id = plugin_id
        self.raise_alerts = raise_alerts
        self.scanned: list[str] = []
        self.contexts: list[CheckContext] = []

    def scan(self, node: SiteNode, context: CheckContext) -> None:
        self.scanned.append(node.url)
        self.contexts.append(context)
        context.record(Exchange(method="GET", url=node.url, status_code=200))
        if self.raise_alerts:
            context.raise_alert(Alert(plugin_id=self.plugin_id, name="Test alert", url=node.url))


class BlockingCheck(ScanCheck):
    """Blocks on each node until released, so tests can observe a running scan."""

    def __init__(self, plugin_id: int):
        self.plugin_id = plugin_id
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def scan(self, node: SiteNode, context: CheckContext) -> None:
        self.calls += 1
        self.started.set()
        while not self.release.wait(timeout=0.05):
            if context.stopped:
                return


class FailingCheck(ScanCheck):
    """Always raises."""

    def __init__(self, plugin_id: int):
        self.plugin_id = plugin_id
        self.calls = 0

    def scan(self, node: SiteNode, context: CheckContext) -> None:
        self.calls += 1
        raise RuntimeError("check exploded")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a mock project directory structure."""
    project_path = temp_dir / "test_project"
    project_path.mkdir()
    (project_path / ".scanctl").mkdir()
    return project_path


@pytest.fixture
def db_path(project_dir: Path) -> Path:
    """Return the database path for a project."""
    return project_dir / ".scanctl" / "scanctl.db"


@pytest.fixture
def initialized_db(db_path: Path) -> Path:
    """Initialize the database and return its path."""
    init_db(db_path)
    return db_path


@pytest.fixture
def session_manager(initialized_db: Path) -> Generator[SessionManager, None, None]:
    """Create a session manager with an initialized database."""
    manager = SessionManager(initialized_db)
    yield manager
    manager.close()


@pytest.fixture
def policy_store() -> PolicyStore:
    """Policy store holding the built-in scanner catalog."""
    return PolicyStore(builtin_plugins())


@pytest.fixture
def site_tree() -> InMemorySiteTree:
    """Site tree with a few pages under example.com."""
    tree = InMemorySiteTree()
    for url in SITE_URLS:
        tree.add_url(url)
    return tree


@pytest.fixture
def history() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def registry(
    policy_store: PolicyStore,
    site_tree: InMemorySiteTree,
    history: InMemoryHistoryStore,
    session_manager: SessionManager,
) -> Generator[ScanRegistry, None, None]:
    registry = ScanRegistry(
        policy_store,
        site_tree=site_tree,
        history=history,
        is_excluded=session_manager.is_excluded,
    )
    yield registry
    registry.remove_all()


@pytest.fixture
def control_api(
    registry: ScanRegistry,
    policy_store: PolicyStore,
    session_manager: SessionManager,
) -> ControlAPI:
    return ControlAPI(registry, policy_store, session_manager)


@pytest.fixture
def blocking_check(policy_store: PolicyStore) -> Generator[BlockingCheck, None, None]:
    """A blocking check bound to the SQL Injection scanner."""
    check = BlockingCheck(40018)
    policy_store.require(40018).check = check
    yield check
    check.release.set()


@pytest.fixture
def make_scan(
    policy_store: PolicyStore,
    site_tree: InMemorySiteTree,
    history: InMemoryHistoryStore,
) -> Generator[Callable[..., ActiveScan], None, None]:
    """Factory for standalone scans on example.com; stops them all afterwards."""
    created: list[ActiveScan] = []

    def _make(scan_id: int = 0, site: str = "example.com", **option_values) -> ActiveScan:
        scan = ActiveScan(
            scan_id,
            site,
            policy_store,
            options=ScanOptions(**option_values),
            site_tree=site_tree,
            history=history,
        )
        created.append(scan)
        return scan

    yield _make
    for scan in created:
        scan.stop()
        scan.wait(timeout=5)
