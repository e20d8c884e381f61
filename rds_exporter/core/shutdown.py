"""Graceful shutdown coordinator for the poller and the scrape listener."""

import logging
import signal
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class LifetimeEvent(str, Enum):
    """Lifecycle events during shutdown process."""

    PREPARE_SHUTDOWN = "prepare-shutdown"
    SHUTDOWN = "shutdown"
    AFTER_SHUTDOWN = "after-shutdown"


class ShutdownCoordinatorProtocol(ABC):
    """Protocol for shutdown coordinator implementations."""

    @abstractmethod
    def initialize(self) -> None:
        """Setup the signal handlers."""
        pass

    @abstractmethod
    def register_lifetime_notification(
        self, callback: Callable[[LifetimeEvent], None]
    ) -> None:
        """Register a callback to be notified of lifetime events."""
        pass

    @abstractmethod
    def register_shutdown_waiter(
        self, name: str, handler: Callable[[float], bool]
    ) -> None:
        """Register a handler that blocks until ready for shutdown."""
        pass

    @abstractmethod
    def is_shutting_down(self) -> bool:
        """Check if shutdown has been initiated."""
        pass

    @abstractmethod
    def shutdown(self, exit_code: int = 0) -> None:
        """Implements the shutdown process."""
        pass

    @property
    @abstractmethod
    def exit_code(self) -> int:
        """Process exit status requested by the first shutdown call."""
        pass


class ShutdownCoordinator(ShutdownCoordinatorProtocol):
    """Coordinator for graceful shutdown of the exporter.

    Handles SIGTERM/SIGINT and fatal listener failures. The metrics poller
    registers for lifetime events so an in-flight cycle can finish before
    the process exits.
    """

    def __init__(self, graceful_shutdown_timeout: int):
        """Initialize shutdown coordinator.

        Args:
            graceful_shutdown_timeout: Maximum seconds to wait for shutdown
        """
        self._graceful_shutdown_timeout = graceful_shutdown_timeout
        self._shutting_down = False
        self._exit_code = 0
        self._shutdown_lock = threading.RLock()
        self._shutdown_notifications: list[Callable[[LifetimeEvent], None]] = []
        self._shutdown_waiters: dict[str, Callable[[float], bool]] = {}

    def initialize(self) -> None:
        """Setup the signal handlers."""
        signal.signal(signal.SIGTERM, self._handle_sigterm)
        signal.signal(signal.SIGINT, self._handle_sigterm)

    def register_lifetime_notification(
        self, callback: Callable[[LifetimeEvent], None]
    ) -> None:
        with self._shutdown_lock:
            self._shutdown_notifications.append(callback)
            logger.debug(
                f"Registered lifetime notification: "
                f"{getattr(callback, '__name__', repr(callback))}"
            )

    def register_shutdown_waiter(
        self, name: str, handler: Callable[[float], bool]
    ) -> None:
        with self._shutdown_lock:
            self._shutdown_waiters[name] = handler
            logger.debug(f"Registered shutdown waiter: {name}")

    def is_shutting_down(self) -> bool:
        with self._shutdown_lock:
            return self._shutting_down

    @property
    def exit_code(self) -> int:
        with self._shutdown_lock:
            return self._exit_code

    def _handle_sigterm(self, signum: int, frame: object) -> None:
        logger.info(f"Received signal {signum}, initiating graceful shutdown")
        self.shutdown()

    def shutdown(self, exit_code: int = 0) -> None:
        """Run the shutdown sequence.

        Args:
            exit_code: Status the process should exit with. Only the first
                call decides it; later calls are ignored.
        """
        with self._shutdown_lock:
            if self._shutting_down:
                logger.warning("Shutdown already in progress, ignoring request")
                return

            self._shutting_down = True
            self._exit_code = exit_code
            waiters = dict(self._shutdown_waiters)

            self._raise_lifetime_event(LifetimeEvent.PREPARE_SHUTDOWN)

        logger.info(
            f"Waiting for {len(waiters)} services to complete "
            f"(timeout: {self._graceful_shutdown_timeout}s)"
        )

        start_time = time.perf_counter()

        for name, waiter in waiters.items():
            remaining = self._graceful_shutdown_timeout - (time.perf_counter() - start_time)

            if remaining <= 0:
                logger.error(f"Shutdown timeout exceeded before checking {name}")
                break

            try:
                if not waiter(remaining):
                    logger.warning(f"{name} was not ready within timeout")
            except Exception as e:
                logger.error(f"Error in shutdown waiter {name}: {e}")

        self._raise_lifetime_event(LifetimeEvent.SHUTDOWN)

        logger.info(
            f"Shutting down after {time.perf_counter() - start_time:.1f}s "
            f"(exit code {exit_code})"
        )

        self._raise_lifetime_event(LifetimeEvent.AFTER_SHUTDOWN)

    def _raise_lifetime_event(self, event: LifetimeEvent) -> None:
        logger.info(f"Raising lifetime event {event}")

        with self._shutdown_lock:
            callbacks = list(self._shutdown_notifications)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    f"Error in lifetime event notification "
                    f"{getattr(callback, '__name__', repr(callback))}: {e}"
                )
