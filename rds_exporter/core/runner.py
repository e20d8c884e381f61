"""Exporter runner with graceful shutdown support."""

import logging
import sys
import threading

from pydantic import ValidationError

from rds_exporter import create_app
from rds_exporter.config import Settings
from rds_exporter.core.server import ScrapeServer
from rds_exporter.core.shutdown import LifetimeEvent
from rds_exporter.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LISTENER_FAILURE_EXIT_CODE = 1


def run() -> None:
    """Run the exporter until a signal or a fatal listener error stops it.

    This is the main entry point. It handles:
    - Logging setup
    - Settings loading and AWS session resolution (fatal on failure)
    - Binding the scrape listener (fatal on failure)
    - Starting the poller and waiting for shutdown

    Exits the process with status 1 on any fatal error.
    """
    try:
        settings = Settings.load()
        settings.validate_config()
    except (ValidationError, ConfigurationError) as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Unable to load configuration: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logger.info("Starting application...")

    try:
        app = create_app(settings)
        # Builds the AWS session, so unresolvable credentials fail here
        storage_metrics_service = app.container.storage_metrics_service()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    container = app.container
    shutdown_coordinator = container.shutdown_coordinator()

    def on_listener_failure(error: Exception) -> None:
        shutdown_coordinator.shutdown(exit_code=LISTENER_FAILURE_EXIT_CODE)

    server = ScrapeServer(
        app,
        host=settings.host,
        port=settings.port,
        threads=settings.waitress_threads,
        on_failure=on_listener_failure,
    )

    try:
        server.bind()
    except OSError as e:
        logger.error(f"Unable to bind scrape listener on {settings.host}:{settings.port}: {e}")
        sys.exit(LISTENER_FAILURE_EXIT_CODE)

    metrics_coordinator = container.metrics_coordinator()
    metrics_coordinator.register_updater(storage_metrics_service.update_metrics)

    stopped = threading.Event()

    def signal_shutdown(lifetime_event: LifetimeEvent) -> None:
        match lifetime_event:
            case LifetimeEvent.SHUTDOWN:
                server.close()
            case LifetimeEvent.AFTER_SHUTDOWN:
                stopped.set()

    shutdown_coordinator.register_lifetime_notification(signal_shutdown)
    shutdown_coordinator.initialize()

    server.start()
    metrics_coordinator.start(interval_seconds=settings.metrics_update_interval)

    stopped.wait()

    sys.exit(shutdown_coordinator.exit_code)
