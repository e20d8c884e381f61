"""Tests for MetricsUpdateCoordinator."""

import threading
import time

from rds_exporter.core.shutdown import LifetimeEvent
from rds_exporter.exceptions import InventoryFetchException
from rds_exporter.metrics.coordinator import MetricsUpdateCoordinator
from tests.testing_utils import StubShutdownCoordinator


class TestMetricsUpdateCoordinator:
    """Test the repeating timer driving the poll cycle."""

    def _make_coordinator(self, shutdown_coordinator=None):
        return MetricsUpdateCoordinator(shutdown_coordinator or StubShutdownCoordinator())

    def test_registers_with_shutdown_coordinator(self):
        shutdown_coordinator = StubShutdownCoordinator()
        self._make_coordinator(shutdown_coordinator)

        assert len(shutdown_coordinator._notifications) == 1
        assert "MetricsUpdateCoordinator" in shutdown_coordinator._waiters

    def test_run_once_calls_updaters_synchronously(self):
        coordinator = self._make_coordinator()
        calls = []
        coordinator.register_updater(lambda: calls.append("first"))
        coordinator.register_updater(lambda: calls.append("second"))

        assert coordinator.run_once() is True
        assert calls == ["first", "second"]
        assert coordinator.last_success_time is not None
        assert coordinator.consecutive_failures == 0

    def test_unregister_updater(self):
        coordinator = self._make_coordinator()
        calls = []

        def updater():
            calls.append(1)

        coordinator.register_updater(updater)
        coordinator.unregister_updater(updater)
        coordinator.unregister_updater(updater)
        coordinator.run_once()

        assert calls == []

    def test_failing_updater_is_recorded_and_isolated(self):
        coordinator = self._make_coordinator()
        good_calls = []

        def failing_updater():
            raise InventoryFetchException("AccessDenied")

        coordinator.register_updater(failing_updater)
        coordinator.register_updater(lambda: good_calls.append(1))

        assert coordinator.run_once() is False
        assert coordinator.run_once() is False

        assert good_calls == [1, 1]
        assert coordinator.consecutive_failures == 2
        assert "AccessDenied" in coordinator.last_error
        assert coordinator.last_success_time is None

    def test_success_resets_failure_state(self):
        coordinator = self._make_coordinator()
        should_fail = True

        def updater():
            if should_fail:
                raise RuntimeError("boom")

        coordinator.register_updater(updater)
        coordinator.run_once()
        should_fail = False
        coordinator.run_once()

        assert coordinator.consecutive_failures == 0
        assert coordinator.last_error is None

    def test_first_cycle_runs_immediately_on_start(self):
        coordinator = self._make_coordinator()
        called = threading.Event()
        coordinator.register_updater(called.set)
        try:
            coordinator.start(interval_seconds=3600)
            assert called.wait(timeout=3.0), "Updater was not invoked at start"
        finally:
            coordinator.stop()

    def test_loop_keeps_running_after_failures(self):
        coordinator = self._make_coordinator()
        attempts = []
        second_attempt = threading.Event()

        def updater():
            attempts.append(1)
            if len(attempts) >= 2:
                second_attempt.set()
            raise InventoryFetchException("timeout")

        coordinator.register_updater(updater)
        try:
            coordinator.start(interval_seconds=1)
            assert second_attempt.wait(timeout=5.0)
            assert coordinator.is_running
        finally:
            coordinator.stop()

    def test_double_start_keeps_thread(self):
        coordinator = self._make_coordinator()
        try:
            coordinator.start(interval_seconds=3600)
            first_thread = coordinator._thread
            coordinator.start(interval_seconds=3600)
            assert coordinator._thread is first_thread
        finally:
            coordinator.stop()

    def test_stop_ends_thread(self):
        coordinator = self._make_coordinator()
        coordinator.start(interval_seconds=3600)

        coordinator.stop()

        assert not coordinator.is_running

    def test_shutdown_via_lifetime_events(self):
        shutdown_coordinator = StubShutdownCoordinator()
        coordinator = self._make_coordinator(shutdown_coordinator)
        coordinator.start(interval_seconds=3600)

        shutdown_coordinator.simulate_event(LifetimeEvent.PREPARE_SHUTDOWN)
        assert coordinator._stop_event.is_set()

        shutdown_coordinator.simulate_event(LifetimeEvent.SHUTDOWN)
        assert not coordinator.is_running

    def test_shutdown_waiter_waits_for_in_flight_cycle(self):
        shutdown_coordinator = StubShutdownCoordinator()
        coordinator = self._make_coordinator(shutdown_coordinator)
        started = threading.Event()
        release = threading.Event()

        def slow_updater():
            started.set()
            release.wait(timeout=5.0)

        coordinator.register_updater(slow_updater)
        worker = threading.Thread(target=coordinator.run_once)
        worker.start()
        assert started.wait(timeout=3.0)

        waiter = shutdown_coordinator._waiters["MetricsUpdateCoordinator"]
        assert waiter(0.1) is False

        release.set()
        worker.join(timeout=3.0)
        assert waiter(1.0) is True

    def test_interval_between_cycles(self):
        coordinator = self._make_coordinator()
        timestamps = []
        coordinator.register_updater(lambda: timestamps.append(time.monotonic()))
        try:
            coordinator.start(interval_seconds=1)
            deadline = time.monotonic() + 5.0
            while len(timestamps) < 2 and time.monotonic() < deadline:
                time.sleep(0.05)
        finally:
            coordinator.stop()

        assert len(timestamps) >= 2
        assert timestamps[1] - timestamps[0] >= 0.9

    def test_start_is_refused_after_prepare_shutdown(self):
        shutdown_coordinator = StubShutdownCoordinator()
        coordinator = self._make_coordinator(shutdown_coordinator)

        shutdown_coordinator.simulate_event(LifetimeEvent.PREPARE_SHUTDOWN)
        coordinator.start(interval_seconds=3600)

        assert not coordinator.is_running
