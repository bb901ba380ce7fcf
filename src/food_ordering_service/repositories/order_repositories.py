"""DynamoDB repositories for carts and orders.

Every write is conditional: carts on their revision counter, order status on
the status that was read, and order placement is a single transaction that
writes the order and empties the cart together. A failed condition raises
ConcurrentModificationError; any other storage failure raises StorageError.
"""

import logging
from datetime import datetime
from typing import Any

from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from food_ordering_service.errors import ConcurrentModificationError, StorageError
from food_ordering_service.models.cart_models import Cart
from food_ordering_service.models.order_models import Order, OrderStatus

logger = logging.getLogger(__name__)

CUSTOMER_INDEX = "customer_id-created_at-index"
VENDOR_INDEX = "vendor_id-created_at-index"

_serializer = TypeSerializer()


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _is_condition_failure(error: ClientError) -> bool:
    """Whether a ClientError was caused by a failed ConditionExpression."""
    code = _error_code(error)
    if code == "ConditionalCheckFailedException":
        return True

    if code == "TransactionCanceledException":
        reasons = error.response.get("CancellationReasons", [])
        return any(reason.get("Code") == "ConditionalCheckFailed" for reason in reasons)

    return False


def _to_attribute_values(item: dict[str, Any]) -> dict[str, Any]:
    """Serialize a resource-style item into low-level attribute values."""
    return {key: _serializer.serialize(value) for key, value in item.items()}


class CartRepository:
    """Repository for cart records keyed by customer_id."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the carts table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_cart(self, customer_id: str) -> Cart | None:
        """Retrieve the cart of a customer.

        Args:
            customer_id: Customer identifier

        Returns:
            Cart if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"customer_id": customer_id}, ConsistentRead=True)
        except ClientError as e:
            logger.error(f"Failed to get cart for customer {customer_id}: {e}")
            raise StorageError("Failed to read cart") from e

        if "Item" not in response:
            return None

        return Cart.from_dynamodb_item(response["Item"])

    def create_cart(self, cart: Cart) -> bool:
        """Store a new cart unless the customer already has one.

        Args:
            cart: Empty cart to create

        Returns:
            bool: True if created, False if a cart already existed
        """
        try:
            self.table.put_item(
                Item=cart.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(customer_id)",
            )
            return True

        except ClientError as e:
            if _is_condition_failure(e):
                return False
            logger.error(f"Failed to create cart for customer {cart.customer_id}: {e}")
            raise StorageError("Failed to create cart") from e

    def save_cart(self, cart: Cart) -> Cart:
        """Write a modified cart if nobody else wrote it since it was read.

        The stored revision must still equal ``cart.revision``; the saved
        cart carries the next revision.

        Args:
            cart: Modified cart carrying the revision it was read at

        Returns:
            Cart: The cart as stored

        Raises:
            ConcurrentModificationError: If the cart changed since it was read
            StorageError: On any other DynamoDB failure
        """
        saved = cart.model_copy(update={"revision": cart.revision + 1})

        try:
            self.table.put_item(
                Item=saved.to_dynamodb_item(),
                ConditionExpression="#revision = :revision",
                ExpressionAttributeNames={"#revision": "revision"},
                ExpressionAttributeValues={":revision": cart.revision},
            )
        except ClientError as e:
            if _is_condition_failure(e):
                logger.warning(f"Concurrent cart update for customer {cart.customer_id}")
                raise ConcurrentModificationError(
                    "Cart was modified by another request, please retry"
                ) from e
            logger.error(f"Failed to save cart for customer {cart.customer_id}: {e}")
            raise StorageError("Failed to save cart") from e

        return saved


class OrderRepository:
    """Repository for orders keyed by order_id.

    Customer and vendor listings use GSIs sorted by created_at.
    """

    def __init__(
        self,
        dynamodb_resource: DynamoDBServiceResource,
        table_name: str,
        carts_table_name: str,
    ) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the orders table
            carts_table_name: Name of the carts table, written in the placement transaction
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.carts_table_name = carts_table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def create_order_and_clear_cart(self, order: Order, cleared_cart: Cart) -> Cart:
        """Atomically store a new order and the emptied cart it was built from.

        Both writes are applied or neither is. The cart write is conditioned
        on ``cleared_cart.revision`` so a cart changed after it was read
        cancels the whole placement.

        Args:
            order: Newly built order
            cleared_cart: The emptied cart, carrying the revision it was read at

        Returns:
            Cart: The emptied cart as stored

        Raises:
            ConcurrentModificationError: If the cart changed since it was read
            StorageError: On any other DynamoDB failure
        """
        saved_cart = cleared_cart.model_copy(update={"revision": cleared_cart.revision + 1})

        try:
            self.dynamodb.meta.client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": _to_attribute_values(order.to_dynamodb_item()),
                            "ConditionExpression": "attribute_not_exists(order_id)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.carts_table_name,
                            "Item": _to_attribute_values(saved_cart.to_dynamodb_item()),
                            "ConditionExpression": "#revision = :revision",
                            "ExpressionAttributeNames": {"#revision": "revision"},
                            "ExpressionAttributeValues": {
                                ":revision": _serializer.serialize(cleared_cart.revision)
                            },
                        }
                    },
                ]
            )
        except ClientError as e:
            if _is_condition_failure(e):
                logger.warning(
                    f"Order placement cancelled, cart of customer {order.customer_id} changed"
                )
                raise ConcurrentModificationError(
                    "Cart was modified while placing the order, please retry"
                ) from e
            logger.error(f"Failed to place order {order.order_id}: {e}")
            raise StorageError("Failed to place order") from e

        return saved_cart

    def get_order(self, order_id: str) -> Order | None:
        """Retrieve an order by ID.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"order_id": order_id}, ConsistentRead=True)
        except ClientError as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            raise StorageError("Failed to read order") from e

        if "Item" not in response:
            return None

        return Order.from_dynamodb_item(response["Item"])

    def list_orders_for_customer(self, customer_id: str) -> list[Order]:
        """List a customer's orders, newest first."""
        return self._query_newest_first(CUSTOMER_INDEX, "customer_id", customer_id)

    def list_orders_for_vendor(self, vendor_id: str) -> list[Order]:
        """List a vendor's orders, newest first."""
        return self._query_newest_first(VENDOR_INDEX, "vendor_id", vendor_id)

    def update_status(
        self,
        order_id: str,
        current_status: OrderStatus,
        new_status: OrderStatus,
        updated_at: datetime,
    ) -> None:
        """Change the status of an order that is still in ``current_status``.

        Args:
            order_id: Order identifier
            current_status: Status the caller read
            new_status: Status to store
            updated_at: Timestamp of the change

        Raises:
            ConcurrentModificationError: If the status changed since it was read
            StorageError: On any other DynamoDB failure
        """
        try:
            self.table.update_item(
                Key={"order_id": order_id},
                UpdateExpression="SET #status = :new_status, updated_at = :updated_at",
                ConditionExpression="#status = :current_status",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":new_status": new_status.value,
                    ":current_status": current_status.value,
                    ":updated_at": updated_at.isoformat(),
                },
            )
        except ClientError as e:
            if _is_condition_failure(e):
                logger.warning(f"Concurrent status update for order {order_id}")
                raise ConcurrentModificationError(
                    "Order status was changed by another request, please retry"
                ) from e
            logger.error(f"Failed to update status of order {order_id}: {e}")
            raise StorageError("Failed to update order status") from e

    def _query_newest_first(self, index_name: str, key_name: str, key_value: str) -> list[Order]:
        """Query a created_at-sorted GSI, following pagination."""
        query_args: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": f"{key_name} = :key",
            "ExpressionAttributeValues": {":key": key_value},
            "ScanIndexForward": False,  # Most recent first
        }
        orders: list[Order] = []

        try:
            while True:
                response = self.table.query(**query_args)
                orders.extend(Order.from_dynamodb_item(item) for item in response.get("Items", []))

                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_args["ExclusiveStartKey"] = last_key

        except ClientError as e:
            logger.error(f"Failed to list orders by {key_name} {key_value}: {e}")
            raise StorageError("Failed to list orders") from e

        return orders
