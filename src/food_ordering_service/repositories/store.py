"""DynamoDB store handle.

The store owns the boto3 resource for the lifetime of the process. It is
created from configuration at startup, health-checked, handed to every
repository, and closed at shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from food_ordering_service.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableNames:
    """DynamoDB table names used by the service."""

    carts: str = "food-ordering-carts"
    orders: str = "food-ordering-orders"
    menu_items: str = "food-ordering-menu-items"
    vendors: str = "food-ordering-vendors"
    customers: str = "food-ordering-customers"

    def all(self) -> list[str]:
        return [self.carts, self.orders, self.menu_items, self.vendors, self.customers]


class DynamoDBStore:
    """Explicitly managed DynamoDB connection shared by all repositories."""

    def __init__(
        self,
        table_names: TableNames,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
    ) -> None:
        """Initialize the store without connecting.

        Args:
            table_names: Names of the tables this service reads and writes
            region: AWS region
            endpoint_url: Local DynamoDB endpoint, None for AWS
            access_key: Access key for the local endpoint
            secret_key: Secret key for the local endpoint
        """
        self.table_names = table_names
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key = access_key
        self.secret_key = secret_key
        self._resource: Any | None = None

    @property
    def resource(self) -> Any:
        """The open boto3 DynamoDB resource.

        Raises:
            StorageError: If the store has not been opened
        """
        if self._resource is None:
            raise StorageError("DynamoDB store is not open")
        return self._resource

    @property
    def is_open(self) -> bool:
        return self._resource is not None

    def open(self) -> Any:
        """Create the boto3 resource.

        Returns:
            Boto3 DynamoDB resource configured for environment
        """
        if self._resource is not None:
            return self._resource

        if self.endpoint_url:
            # Local DynamoDB - credentials come from configuration
            logger.info(f"Using local DynamoDB at {self.endpoint_url}")
            self._resource = boto3.resource(
                "dynamodb",
                endpoint_url=self.endpoint_url,
                region_name=self.region,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
            )
        else:
            logger.info(f"Using AWS DynamoDB in region {self.region}")
            # Production - boto3 will use default credential chain (IAM role, env vars, etc.)
            self._resource = boto3.resource("dynamodb", region_name=self.region)

        return self._resource

    def check_health(self) -> bool:
        """Check that every configured table is reachable.

        Returns:
            bool: True if all tables could be described, False otherwise
        """
        if self._resource is None:
            return False

        for table_name in self.table_names.all():
            try:
                self._resource.Table(table_name).load()
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Health check failed for table {table_name}: {e}")
                return False

        return True

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self._resource is None:
            return

        self._resource.meta.client.close()
        self._resource = None
        logger.info("DynamoDB store closed")
