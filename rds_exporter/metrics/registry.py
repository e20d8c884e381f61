"""Storage gauge registry shared by the poller and the scrape endpoint.

The registry owns a private Prometheus CollectorRegistry instead of using
the process-global one, so each instance can be created and inspected in
isolation. prometheus_client guards every labelled child with its own lock,
which makes each (metric, instance) value atomically readable and writable.

Values are never removed: an instance that disappears from the inventory
keeps exporting its last known values until the process restarts.
"""

from prometheus_client import CollectorRegistry, Gauge, generate_latest

MAX_ALLOCATED_STORAGE_METRIC = "rds_max_allocated_storage_gigabytes"
CURRENT_USAGE_METRIC = "rds_current_usage_gigabytes"
INSTANCE_LABEL = "instance"


class StorageMetricsRegistry:
    """Last-known storage gauges keyed by DB instance identifier."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize the gauges.

        Args:
            registry: Collector registry to register into. A fresh private
                registry is created when omitted.
        """
        self.registry = registry if registry is not None else CollectorRegistry()

        self.max_allocated_storage = Gauge(
            MAX_ALLOCATED_STORAGE_METRIC,
            "Maximum storage (in gigabytes) that RDS instance can auto-scale to.",
            [INSTANCE_LABEL],
            registry=self.registry,
        )

        # Despite the name this carries allocated storage, see
        # StorageMetricsService._update_instance.
        self.current_usage = Gauge(
            CURRENT_USAGE_METRIC,
            "Current storage usage of the RDS instance in gigabytes.",
            [INSTANCE_LABEL],
            registry=self.registry,
        )

    def set_current_usage(self, instance_id: str, value: float) -> None:
        self.current_usage.labels(instance=instance_id).set(value)

    def set_max_allocated_storage(self, instance_id: str, value: float) -> None:
        self.max_allocated_storage.labels(instance=instance_id).set(value)

    def get_value(self, metric_name: str, instance_id: str) -> float | None:
        """Return the current value of one gauge, or None if never set."""
        return self.registry.get_sample_value(
            metric_name, {INSTANCE_LABEL: instance_id}
        )

    def get_metrics_text(self) -> str:
        """Generate metrics in Prometheus text format."""
        return generate_latest(self.registry).decode("utf-8")
