"""Read-only DynamoDB repositories for catalog and customer records.

Menu items, vendors and customers are written by other services. Lookups
return None for a missing record; storage failures raise StorageError.
"""

import logging

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from food_ordering_service.errors import StorageError
from food_ordering_service.models.catalog_models import Customer, MenuItem, Vendor

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Repository for menu item and vendor lookups.

    Menu items are keyed by item_id, vendors by vendor_id.
    """

    def __init__(
        self,
        dynamodb_resource: DynamoDBServiceResource,
        menu_items_table_name: str,
        vendors_table_name: str,
    ) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            menu_items_table_name: Name of the menu items table
            vendors_table_name: Name of the vendors table
        """
        self.dynamodb = dynamodb_resource
        self.menu_items_table: Table = dynamodb_resource.Table(menu_items_table_name)
        self.vendors_table: Table = dynamodb_resource.Table(vendors_table_name)

    def get_menu_item(self, item_id: str) -> MenuItem | None:
        """Retrieve a menu item.

        Args:
            item_id: Menu item identifier

        Returns:
            MenuItem if found, None otherwise
        """
        try:
            response = self.menu_items_table.get_item(Key={"item_id": item_id})
        except ClientError as e:
            logger.error(f"Failed to get menu item {item_id}: {e}")
            raise StorageError("Failed to read menu item") from e

        if "Item" not in response:
            return None

        return MenuItem.from_dynamodb_item(response["Item"])

    def get_vendor(self, vendor_id: str) -> Vendor | None:
        """Retrieve a vendor.

        Args:
            vendor_id: Vendor identifier

        Returns:
            Vendor if found, None otherwise
        """
        try:
            response = self.vendors_table.get_item(Key={"vendor_id": vendor_id})
        except ClientError as e:
            logger.error(f"Failed to get vendor {vendor_id}: {e}")
            raise StorageError("Failed to read vendor") from e

        if "Item" not in response:
            return None

        return Vendor.from_dynamodb_item(response["Item"])


class CustomerRepository:
    """Repository for customer profile lookups."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_customer(self, customer_id: str) -> Customer | None:
        """Retrieve a customer profile.

        Args:
            customer_id: Customer identifier

        Returns:
            Customer if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"customer_id": customer_id})
        except ClientError as e:
            logger.error(f"Failed to get customer {customer_id}: {e}")
            raise StorageError("Failed to read customer") from e

        if "Item" not in response:
            return None

        return Customer.from_dynamodb_item(response["Item"])
