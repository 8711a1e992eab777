"""Tests for the active scan state machine and its worker."""

import logging
import time
from collections.abc import Callable

import pytest

from scanctl.modules.checks import Alert, Exchange
from scanctl.modules.policy import AlertThreshold, AttackStrength, PolicyStore
from scanctl.modules.scan import ActiveScan, ScanListener, ScanState
from scanctl.modules.sitetree import InMemorySiteTree

from conftest import FailingCheck, RecordingCheck

MakeScan = Callable[..., ActiveScan]


def _bind(policy_store: PolicyStore, check) -> None:
    policy_store.require(check.plugin_id).check = check


class EventLog(ScanListener):
    def __init__(self):
        self.events: list[tuple] = []

    def scan_started(self, scan):
        self.events.append(("started",))

    def scan_state_changed(self, scan, old, new):
        self.events.append(("state", old, new))

    def alert_found(self, scan, alert):
        self.events.append(("alert", alert.alert_id))

    def scan_complete(self, scan):
        self.events.append(("complete",))


class TestStart:
    def test_start_runs_and_resets_progress(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        assert scan.state is ScanState.NOT_STARTED
        assert scan.start() is True
        assert scan.state is ScanState.RUNNING
        assert scan.progress == 0
        assert scan.time_started is not None
        assert scan.time_finished is None

    def test_second_start_is_ignored(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        scan.start()
        assert scan.start() is False
        assert scan.state is ScanState.RUNNING

    def test_unknown_site_stays_not_started(self, make_scan: MakeScan, caplog):
        scan = make_scan(site="unknown.test")
        with caplog.at_level(logging.ERROR):
            assert scan.start() is False
        assert scan.state is ScanState.NOT_STARTED
        assert "unknown.test" in caplog.text

    def test_no_runnable_scanners_finishes_at_100(self, make_scan: MakeScan):
        scan = make_scan()
        scan.start()
        assert scan.wait(timeout=5)
        assert scan.state is ScanState.FINISHED
        assert scan.progress == 100


class TestTransitions:
    def test_pause_resume(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        scan.start()
        assert scan.pause() is True
        assert scan.state is ScanState.PAUSED
        assert scan.resume() is True
        assert scan.state is ScanState.RUNNING

    def test_invalid_transitions_are_noops(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        assert scan.pause() is False
        assert scan.resume() is False
        assert scan.stop() is False
        assert scan.state is ScanState.NOT_STARTED

        scan.start()
        assert scan.resume() is False
        scan.pause()
        assert scan.pause() is False
        assert scan.state is ScanState.PAUSED

        scan.stop()
        assert scan.pause() is False
        assert scan.resume() is False
        assert scan.stop() is False
        assert scan.state is ScanState.FINISHED

    def test_stop_sets_finished_time_once(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        scan.start()
        assert scan.stop() is True
        finished = scan.time_finished
        assert finished is not None
        assert scan.wait(timeout=5)
        assert scan.time_finished == finished
        assert scan.state is ScanState.FINISHED

    def test_stop_while_paused_releases_worker(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        scan.start()
        assert blocking_check.started.wait(timeout=5)
        scan.pause()
        blocking_check.release.set()
        scan.stop()
        assert scan.wait(timeout=5)
        assert not scan.is_worker_alive()

    def test_pause_holds_worker_between_units(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        scan.start()
        assert blocking_check.started.wait(timeout=5)
        scan.pause()
        blocking_check.release.set()
        time.sleep(0.2)
        assert blocking_check.calls == 1
        scan.resume()
        assert scan.wait(timeout=5)
        assert blocking_check.calls == 4
        assert scan.progress == 100


class TestWorker:
    def test_scans_every_node_and_records_evidence(
        self, make_scan: MakeScan, policy_store: PolicyStore
    ):
        check = RecordingCheck(40018)
        _bind(policy_store, check)
        scan = make_scan()
        scan.start()
        assert scan.wait(timeout=5)

        assert scan.state is ScanState.FINISHED
        assert scan.progress == 100
        assert sorted(check.scanned) == [
            "http://example.com/",
            "http://example.com/admin",
            "http://example.com/admin/users",
            "http://example.com/login",
        ]
        assert scan.message_ids() == (1, 2, 3, 4)
        assert scan.total_requests == 4

    def test_effective_settings_handed_to_check(
        self, make_scan: MakeScan, policy_store: PolicyStore
    ):
        check = RecordingCheck(40018)
        _bind(policy_store, check)
        policy_store.set_attack_strength(40018, AttackStrength.INSANE)
        scan = make_scan(recurse=False)
        scan.start()
        scan.wait(timeout=5)
        (context,) = check.contexts
        assert context.attack_strength is AttackStrength.INSANE
        assert context.alert_threshold is AlertThreshold.MEDIUM

    def test_no_recurse_scans_start_node_only(
        self, make_scan: MakeScan, policy_store: PolicyStore
    ):
        check = RecordingCheck(40018)
        _bind(policy_store, check)
        scan = make_scan(recurse=False)
        scan.start()
        scan.wait(timeout=5)
        assert check.scanned == ["http://example.com/"]

    def test_in_scope_only_skips_out_of_scope_nodes(
        self, make_scan: MakeScan, policy_store: PolicyStore, site_tree: InMemorySiteTree
    ):
        site_tree.add_url("http://other.test/page", in_scope=False)
        check = RecordingCheck(40018)
        _bind(policy_store, check)
        scan = make_scan(in_scope_only=True)
        scan.start()
        scan.wait(timeout=5)
        assert scan.start_node is site_tree.root()
        assert check.scanned
        assert not any("other.test" in url for url in check.scanned)

    def test_excluded_urls_are_skipped(self, policy_store: PolicyStore, site_tree, history):
        check = RecordingCheck(40018)
        _bind(policy_store, check)
        scan = ActiveScan(
            0,
            "example.com",
            policy_store,
            site_tree=site_tree,
            history=history,
            is_excluded=lambda url: "/admin" in url,
        )
        scan.start()
        scan.wait(timeout=5)
        assert sorted(check.scanned) == ["http://example.com/", "http://example.com/login"]

    def test_failing_check_does_not_abort_scan(
        self, make_scan: MakeScan, policy_store: PolicyStore, caplog
    ):
        failing = FailingCheck(6)
        recording = RecordingCheck(40018)
        _bind(policy_store, failing)
        _bind(policy_store, recording)
        scan = make_scan()
        with caplog.at_level(logging.WARNING):
            scan.start()
            assert scan.wait(timeout=5)
        assert failing.calls == 4
        assert len(recording.scanned) == 4
        assert scan.state is ScanState.FINISHED
        assert "check exploded" in caplog.text

    def test_alerts_are_persisted_and_recorded(
        self, make_scan: MakeScan, policy_store: PolicyStore
    ):
        _bind(policy_store, RecordingCheck(40018, raise_alerts=True))
        scan = make_scan(recurse=False)
        listener = EventLog()
        scan.add_listener(listener)
        scan.start()
        scan.wait(timeout=5)
        assert scan.alert_ids() == (1,)
        assert ("alert", 1) in listener.events

    def test_visible_messages_capped(self, make_scan: MakeScan, policy_store: PolicyStore):
        _bind(policy_store, RecordingCheck(40018))
        scan = make_scan(max_results_to_list=2)
        scan.start()
        scan.wait(timeout=5)
        assert scan.message_ids() == (1, 2)
        assert scan.total_requests == 4


class TestWorkerCallbacks:
    def test_progress_is_clamped(self, make_scan: MakeScan):
        scan = make_scan()
        scan.host_progress("example.com", "", 150)
        assert scan.progress == 100
        scan.host_progress("example.com", "", -5)
        assert scan.progress == 0
        scan.host_progress("example.com", "", 37)
        assert scan.progress == 37

    def test_unsaved_exchange_without_history_is_dropped(self, policy_store, site_tree, caplog):
        scan = ActiveScan(0, "example.com", policy_store, site_tree=site_tree)
        with caplog.at_level(logging.WARNING):
            scan.notify_new_message(Exchange(url="http://example.com/"))
        assert scan.total_requests == 0
        assert "dropped" in caplog.text

    def test_saved_exchange_recorded_by_id(self, make_scan: MakeScan):
        scan = make_scan()
        scan.notify_new_message(Exchange(url="http://example.com/", history_id=42))
        assert scan.message_ids() == (42,)

    def test_sentinel_alert_id_not_recorded_without_history(self, policy_store, site_tree):
        scan = ActiveScan(0, "example.com", policy_store, site_tree=site_tree)
        scan.alert_found(Alert(plugin_id=1, name="x"))
        assert scan.alert_ids() == ()

    def test_scanner_complete_after_stop_keeps_state(self, make_scan: MakeScan, blocking_check):
        scan = make_scan()
        listener = EventLog()
        scan.add_listener(listener)
        scan.start()
        scan.stop()
        scan.wait(timeout=5)
        finished_changes = [
            event
            for event in listener.events
            if event[0] == "state" and event[2] is ScanState.FINISHED
        ]
        assert len(finished_changes) == 1
        assert listener.events[-1] == ("complete",)


class TestListeners:
    def test_lifecycle_events(self, make_scan: MakeScan):
        scan = make_scan()
        listener = EventLog()
        scan.add_listener(listener)
        scan.start()
        scan.wait(timeout=5)
        assert listener.events[0] == ("started",)
        assert ("state", ScanState.NOT_STARTED, ScanState.RUNNING) in listener.events
        assert ("state", ScanState.RUNNING, ScanState.FINISHED) in listener.events
        assert listener.events[-1] == ("complete",)

    def test_failing_listener_is_isolated(self, make_scan: MakeScan, caplog):
        class Broken(ScanListener):
            def scan_progress(self, scan, host, message, percentage):
                raise RuntimeError("listener broke")

        scan = make_scan()
        scan.add_listener(Broken())
        with caplog.at_level(logging.ERROR):
            scan.start()
            assert scan.wait(timeout=5)
        assert scan.state is ScanState.FINISHED
        assert "listener" in caplog.text

    def test_removed_listener_gets_nothing(self, make_scan: MakeScan):
        scan = make_scan()
        listener = EventLog()
        scan.add_listener(listener)
        scan.remove_listener(listener)
        scan.start()
        scan.wait(timeout=5)
        assert listener.events == []


@pytest.mark.parametrize("check_cls", [RecordingCheck, FailingCheck])
def test_scan_always_reaches_finished(make_scan: MakeScan, policy_store, check_cls):
    _bind(policy_store, check_cls(40018))
    scan = make_scan()
    scan.start()
    assert scan.wait(timeout=5)
    assert scan.state is ScanState.FINISHED
    assert scan.time_finished is not None
