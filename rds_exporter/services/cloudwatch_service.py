"""CloudWatch sample service for per-instance storage telemetry."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from rds_exporter.exceptions import MetricSampleException

if TYPE_CHECKING:
    from mypy_boto3_cloudwatch import CloudWatchClient
    from mypy_boto3_cloudwatch.type_defs import MetricDataQueryTypeDef

logger = logging.getLogger(__name__)

RDS_NAMESPACE = "AWS/RDS"
FREE_STORAGE_SPACE_METRIC = "FreeStorageSpace"
INSTANCE_DIMENSION = "DBInstanceIdentifier"

SAMPLE_LOOKBACK = timedelta(hours=3)
SAMPLE_PERIOD_SECONDS = 3600
SAMPLE_STATISTIC = "Average"
SAMPLE_QUERY_ID = "m1"


@dataclass
class MetricSample:
    """Result of one trailing-window metric query for a single instance."""

    instance_identifier: str
    timestamps: list[datetime] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    @property
    def has_data_points(self) -> bool:
        return len(self.values) > 0


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CloudWatchSampleService:
    """Fetches recent FreeStorageSpace samples from CloudWatch."""

    def __init__(
        self,
        cloudwatch_client: "CloudWatchClient",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize sample service.

        Args:
            cloudwatch_client: boto3 CloudWatch client, shared for the process lifetime.
            clock: Returns the current time; the query window ends here.
        """
        self.cloudwatch_client = cloudwatch_client
        self._clock = clock

    def build_query(self, instance_id: str) -> "MetricDataQueryTypeDef":
        return {
            "Id": SAMPLE_QUERY_ID,
            "MetricStat": {
                "Metric": {
                    "Namespace": RDS_NAMESPACE,
                    "MetricName": FREE_STORAGE_SPACE_METRIC,
                    "Dimensions": [
                        {"Name": INSTANCE_DIMENSION, "Value": instance_id},
                    ],
                },
                "Period": SAMPLE_PERIOD_SECONDS,
                "Stat": SAMPLE_STATISTIC,
            },
        }

    def get_free_storage_sample(self, instance_id: str) -> MetricSample:
        """Fetch the averaged free-space sample over the trailing window.

        Args:
            instance_id: DB instance identifier used as the metric dimension.

        Returns:
            The sample, possibly without data points.

        Raises:
            MetricSampleException: If the CloudWatch call fails.
        """
        end_time = self._clock()
        start_time = end_time - SAMPLE_LOOKBACK

        try:
            response = self.cloudwatch_client.get_metric_data(
                MetricDataQueries=[self.build_query(instance_id)],
                StartTime=start_time,
                EndTime=end_time,
            )
        except (ClientError, BotoCoreError) as e:
            raise MetricSampleException(instance_id, str(e)) from e

        sample = MetricSample(instance_identifier=instance_id)
        results = response.get("MetricDataResults", [])
        if results:
            sample.timestamps = list(results[0].get("Timestamps", []))
            sample.values = list(results[0].get("Values", []))

        logger.debug(
            "Fetched metric sample",
            extra={"instance": instance_id, "data_points": len(sample.values)},
        )
        return sample
