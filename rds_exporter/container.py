"""Application dependency injection container."""

from dependency_injector import containers, providers

from rds_exporter.config import Settings
from rds_exporter.core.shutdown import ShutdownCoordinator
from rds_exporter.metrics.coordinator import MetricsUpdateCoordinator
from rds_exporter.metrics.registry import StorageMetricsRegistry
from rds_exporter.services.aws_session import (
    create_aws_session,
    create_cloudwatch_client,
    create_rds_client,
)
from rds_exporter.services.cloudwatch_service import CloudWatchSampleService
from rds_exporter.services.rds_service import RdsInventoryService
from rds_exporter.services.storage_metrics_service import StorageMetricsService


class AppContainer(containers.DeclarativeContainer):
    """Exporter service container.

    The storage metrics registry is the only state shared between the
    poller thread and the scrape endpoint; both receive the same singleton.
    AWS clients are created lazily, on first resolution of a service that
    needs them, so tests can override them before anything talks to AWS.
    """

    # Configuration - must be provided
    config = providers.Dependency(instance_of=Settings)

    # Shutdown coordinator
    shutdown_coordinator = providers.Singleton(
        ShutdownCoordinator,
        graceful_shutdown_timeout=config.provided.graceful_shutdown_timeout,
    )

    # Gauges shared by the poller and /metrics
    metrics_registry = providers.Singleton(StorageMetricsRegistry)

    # Repeating timer driving the poll cycle
    metrics_coordinator = providers.Singleton(
        MetricsUpdateCoordinator,
        shutdown_coordinator=shutdown_coordinator,
    )

    # AWS session and clients, resolved once per process
    aws_session = providers.Singleton(create_aws_session, settings=config)

    rds_client = providers.Singleton(
        create_rds_client, session=aws_session, settings=config
    )

    cloudwatch_client = providers.Singleton(
        create_cloudwatch_client, session=aws_session, settings=config
    )

    # Inventory and sample fetchers
    inventory_service = providers.Singleton(
        RdsInventoryService, rds_client=rds_client
    )

    sample_service = providers.Singleton(
        CloudWatchSampleService, cloudwatch_client=cloudwatch_client
    )

    # Cycle runner
    storage_metrics_service = providers.Singleton(
        StorageMetricsService,
        inventory_service=inventory_service,
        sample_service=sample_service,
        metrics_registry=metrics_registry,
    )
