"""RDS inventory service."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from rds_exporter.exceptions import InventoryFetchException

if TYPE_CHECKING:
    from mypy_boto3_rds import RDSClient
    from mypy_boto3_rds.type_defs import DBInstanceTypeDef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBInstanceRecord:
    """Static storage attributes of one managed DB instance.

    Storage sizes are in gigabytes. ``max_allocated_storage`` is None when
    storage auto-scaling is disabled for the instance.
    """

    identifier: str
    allocated_storage: int
    max_allocated_storage: int | None = None

    @classmethod
    def from_api(cls, db_instance: "DBInstanceTypeDef") -> "DBInstanceRecord":
        return cls(
            identifier=db_instance["DBInstanceIdentifier"],
            allocated_storage=db_instance.get("AllocatedStorage", 0),
            max_allocated_storage=db_instance.get("MaxAllocatedStorage"),
        )


class RdsInventoryService:
    """Lists managed DB instances from the RDS control-plane API.

    No retry or caching happens here; a failed call surfaces to the caller.
    """

    def __init__(self, rds_client: "RDSClient") -> None:
        """Initialize inventory service.

        Args:
            rds_client: boto3 RDS client, shared for the process lifetime.
        """
        self.rds_client = rds_client

    def list_instances(self) -> list[DBInstanceRecord]:
        """Return every DB instance visible in the configured region.

        Raises:
            InventoryFetchException: If any page of the listing fails.
        """
        records: list[DBInstanceRecord] = []

        try:
            paginator = self.rds_client.get_paginator("describe_db_instances")
            for page in paginator.paginate():
                for db_instance in page.get("DBInstances", []):
                    records.append(DBInstanceRecord.from_api(db_instance))
        except (ClientError, BotoCoreError) as e:
            raise InventoryFetchException(str(e)) from e

        logger.debug(f"Described {len(records)} DB instances")
        return records
