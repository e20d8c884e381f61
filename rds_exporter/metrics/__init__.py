"""Prometheus metrics module."""

from rds_exporter.metrics.coordinator import MetricsUpdateCoordinator
from rds_exporter.metrics.registry import StorageMetricsRegistry

__all__ = [
    "MetricsUpdateCoordinator",
    "StorageMetricsRegistry",
]
