"""Storage metrics service: one poll-transform-publish pass."""

import logging

from rds_exporter.exceptions import MetricSampleException
from rds_exporter.metrics.registry import StorageMetricsRegistry
from rds_exporter.services.cloudwatch_service import CloudWatchSampleService
from rds_exporter.services.rds_service import DBInstanceRecord, RdsInventoryService

logger = logging.getLogger(__name__)


class StorageMetricsService:
    """Derives per-instance storage gauges from the RDS inventory.

    The update_metrics() method is registered with the
    MetricsUpdateCoordinator, which calls it on a fixed interval.
    """

    def __init__(
        self,
        inventory_service: RdsInventoryService,
        sample_service: CloudWatchSampleService,
        metrics_registry: StorageMetricsRegistry,
    ) -> None:
        self.inventory_service = inventory_service
        self.sample_service = sample_service
        self.metrics_registry = metrics_registry

    def update_metrics(self) -> None:
        """Run one full pass over the current inventory.

        Raises:
            InventoryFetchException: If the inventory cannot be listed. The
                whole pass is abandoned and no gauge is touched.
        """
        logger.info("Updating metrics...")

        instances = self.inventory_service.list_instances()

        updated = 0
        for instance in instances:
            if self._update_instance(instance):
                updated += 1

        logger.info(
            "Metrics updated successfully.",
            extra={"instances": len(instances), "updated": updated},
        )

    def _update_instance(self, instance: DBInstanceRecord) -> bool:
        """Update the gauges of a single instance.

        Returns:
            True if any gauge was written.
        """
        try:
            sample = self.sample_service.get_free_storage_sample(instance.identifier)
        except MetricSampleException as e:
            logger.warning(
                e.message,
                extra={"instance": instance.identifier, "error_code": e.error_code},
            )
            return False

        if not sample.has_data_points:
            logger.info(f"no metric data found for instance {instance.identifier}")
            return False

        # FIXME: rds_current_usage_gigabytes publishes allocated storage and the
        # FreeStorageSpace sample only gates publication. Switching to
        # allocated minus free space changes the published series for every
        # existing dashboard, so it needs a new metric name.
        self.metrics_registry.set_current_usage(
            instance.identifier, float(instance.allocated_storage)
        )

        if instance.max_allocated_storage is not None:
            self.metrics_registry.set_max_allocated_storage(
                instance.identifier, float(instance.max_allocated_storage)
            )

        return True
