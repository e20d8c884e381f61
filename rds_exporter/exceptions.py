"""Exporter exceptions with log-ready messages."""


class ConfigurationError(Exception):
    """Raised when application configuration is invalid."""

    pass


class ExporterException(Exception):
    """Base exception class for upstream fetch errors."""

    def __init__(self, message: str, error_code: str) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class InventoryFetchException(ExporterException):
    """Exception raised when the DB instance inventory cannot be listed."""

    def __init__(self, cause: str) -> None:
        self.cause = cause
        message = f"Unable to describe DB instances: {cause}"
        super().__init__(message, error_code="INVENTORY_FETCH_FAILED")


class MetricSampleException(ExporterException):
    """Exception raised when a metric sample for one instance cannot be fetched."""

    def __init__(self, instance_id: str, cause: str) -> None:
        self.instance_id = instance_id
        self.cause = cause
        message = f"Unable to get metric data for instance {instance_id}: {cause}"
        super().__init__(message, error_code="METRIC_SAMPLE_FAILED")
