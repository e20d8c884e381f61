"""Metrics update coordinator for periodic metric refreshes.

This module provides the repeating timer that drives the exporter. Services
register their update_metrics() methods, and the coordinator calls them at a
fixed interval in a background thread. Tests call run_once() to drive a single
iteration synchronously.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from rds_exporter.core.shutdown import LifetimeEvent
from rds_exporter.exceptions import ExporterException

if TYPE_CHECKING:
    from rds_exporter.core.shutdown import ShutdownCoordinatorProtocol

logger = logging.getLogger(__name__)


class MetricsUpdateCoordinator:
    """Coordinates periodic metric updates across services.

    The first iteration runs as soon as the loop starts, later ones after
    each interval. An updater that raises only fails its own call: the
    error is logged and recorded, the other updaters still run, and the loop
    tries again at the next interval.

    Example usage:
        coordinator = container.metrics_coordinator()
        coordinator.register_updater(storage_metrics_service.update_metrics)
        coordinator.start(interval_seconds=300)
    """

    def __init__(self, shutdown_coordinator: "ShutdownCoordinatorProtocol"):
        """Initialize the coordinator.

        Args:
            shutdown_coordinator: Coordinator for graceful shutdown integration.
        """
        self._updaters: list[Callable[[], None]] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._cycle_lock = threading.Lock()

        self._shutdown_requested = False
        self._last_success_time: float | None = None
        self._last_error: str | None = None
        self._consecutive_failures = 0

        shutdown_coordinator.register_lifetime_notification(self._on_lifetime_event)
        shutdown_coordinator.register_shutdown_waiter(
            "MetricsUpdateCoordinator", self._wait_for_cycle
        )

    def register_updater(self, updater: Callable[[], None]) -> None:
        """Register a service's update_metrics method.

        Args:
            updater: A callable that updates the service's metrics.
        """
        with self._lock:
            self._updaters.append(updater)
            logger.debug(
                "Registered metrics updater",
                extra={"updater": getattr(updater, "__name__", repr(updater))},
            )

    def unregister_updater(self, updater: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._updaters.remove(updater)
            except ValueError:
                pass  # Already removed or never registered

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_success_time(self) -> float | None:
        """Wall-clock time of the last iteration where every updater succeeded."""
        with self._lock:
            return self._last_success_time

    @property
    def last_error(self) -> str | None:
        with self._lock:
            return self._last_error

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._consecutive_failures

    def start(self, interval_seconds: int = 300) -> None:
        """Start the background update loop.

        Args:
            interval_seconds: Time between update cycles (default: 300).
        """
        if self._shutdown_requested:
            logger.warning("Not starting metrics update coordinator during shutdown")
            return

        if self.is_running:
            logger.warning("Metrics update coordinator already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._update_loop,
            args=(interval_seconds,),
            daemon=True,
            name="MetricsUpdateCoordinator",
        )
        self._thread.start()
        logger.info(
            "Started metrics update coordinator",
            extra={"interval_seconds": interval_seconds},
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background update loop."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("Stopped metrics update coordinator")

    def run_once(self) -> bool:
        """Execute all registered updaters once.

        Returns:
            True if every updater completed without raising.
        """
        with self._lock:
            updaters = list(self._updaters)

        failed = False
        with self._cycle_lock:
            for updater in updaters:
                try:
                    updater()
                except Exception as e:
                    failed = True
                    self._record_failure(updater, e)

        if not failed:
            with self._lock:
                self._last_success_time = time.time()
                self._last_error = None
                self._consecutive_failures = 0

        return not failed

    def _record_failure(self, updater: Callable[[], None], error: Exception) -> None:
        extra = {
            "updater": getattr(updater, "__name__", repr(updater)),
            "error": str(error),
        }
        if isinstance(error, ExporterException):
            # Expected upstream failure, the traceback adds nothing
            extra["error_code"] = error.error_code
            logger.error(f"Metrics updater failed: {error}", extra=extra)
        else:
            logger.error(f"Metrics updater failed: {error}", exc_info=True, extra=extra)

        with self._lock:
            self._last_error = str(error)
            self._consecutive_failures += 1

    def _update_loop(self, interval_seconds: int) -> None:
        while not self._stop_event.is_set():
            self.run_once()

            if self._stop_event.wait(interval_seconds):
                break

    def _wait_for_cycle(self, timeout: float) -> bool:
        """Shutdown waiter: block until an in-flight cycle has finished."""
        if not self._cycle_lock.acquire(timeout=timeout):
            return False
        self._cycle_lock.release()
        return True

    def _on_lifetime_event(self, event: LifetimeEvent) -> None:
        match event:
            case LifetimeEvent.PREPARE_SHUTDOWN:
                self._shutdown_requested = True
                self._stop_event.set()
            case LifetimeEvent.SHUTDOWN:
                self.stop()
