"""Tests for graceful shutdown coordinator."""

import signal
from unittest.mock import MagicMock

from rds_exporter.core.shutdown import LifetimeEvent, ShutdownCoordinator


class TestShutdownCoordinator:
    """Tests for ShutdownCoordinator functionality."""

    def test_initial_state(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)

        assert coordinator.is_shutting_down() is False
        assert coordinator.exit_code == 0

    def test_lifetime_event_sequence(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        events_received = []
        coordinator.register_lifetime_notification(events_received.append)

        coordinator._handle_sigterm(signal.SIGTERM, None)

        assert events_received == [
            LifetimeEvent.PREPARE_SHUTDOWN,
            LifetimeEvent.SHUTDOWN,
            LifetimeEvent.AFTER_SHUTDOWN,
        ]
        assert coordinator.is_shutting_down() is True

    def test_shutdown_is_idempotent(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        callback = MagicMock()
        coordinator.register_lifetime_notification(callback)

        coordinator.shutdown()
        coordinator.shutdown()

        assert callback.call_count == 3

    def test_first_exit_code_wins(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)

        coordinator.shutdown(exit_code=1)
        coordinator.shutdown(exit_code=0)

        assert coordinator.exit_code == 1

    def test_waiters_run_before_shutdown_event(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        order = []

        def waiter(timeout: float) -> bool:
            order.append("waiter")
            return True

        def notification(event: LifetimeEvent) -> None:
            order.append(event)

        coordinator.register_lifetime_notification(notification)
        coordinator.register_shutdown_waiter("poller", waiter)
        coordinator.shutdown()

        assert order == [
            LifetimeEvent.PREPARE_SHUTDOWN,
            "waiter",
            LifetimeEvent.SHUTDOWN,
            LifetimeEvent.AFTER_SHUTDOWN,
        ]

    def test_failing_callbacks_do_not_stop_shutdown(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        good = MagicMock()

        coordinator.register_lifetime_notification(MagicMock(side_effect=RuntimeError("boom")))
        coordinator.register_lifetime_notification(good)
        coordinator.register_shutdown_waiter("broken", MagicMock(side_effect=RuntimeError("boom")))

        coordinator.shutdown()

        good.assert_any_call(LifetimeEvent.AFTER_SHUTDOWN)

    def test_waiter_not_ready_is_tolerated(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        callback = MagicMock()
        coordinator.register_lifetime_notification(callback)
        coordinator.register_shutdown_waiter("slow", lambda timeout: False)

        coordinator.shutdown()

        callback.assert_any_call(LifetimeEvent.AFTER_SHUTDOWN)
