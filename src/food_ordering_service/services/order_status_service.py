"""Order status state machine for vendors.

The fulfillment pipeline is strictly linear:

    Pending -> Preparing -> Out for Delivery -> Delivered

Delivered is terminal. ``OrderStatusService.update_status`` is the only code
path that changes an order's status.
"""

import logging
from datetime import UTC, datetime

from fastapi.concurrency import run_in_threadpool

from food_ordering_service.errors import (
    ConcurrentModificationError,
    ConflictError,
    NotFound,
    ValidationError,
)
from food_ordering_service.models.order_models import Order, OrderStatus
from food_ordering_service.observability import traced
from food_ordering_service.observability.metrics import (
    record_rejected_transition,
    record_status_transition,
    record_write_conflict,
)
from food_ordering_service.repositories.order_repositories import OrderRepository

logger = logging.getLogger(__name__)

ORDER_STATUS_TRANSITIONS: dict[OrderStatus, OrderStatus | None] = {
    OrderStatus.PENDING: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: None,
}


def next_status(current: OrderStatus) -> OrderStatus | None:
    """Return the only status an order may move to from ``current``.

    Args:
        current: The order's current status

    Returns:
        The next status, or None if ``current`` is terminal
    """
    return ORDER_STATUS_TRANSITIONS[current]


def parse_status(value: str | None) -> OrderStatus:
    """Parse a requested status value.

    Raises:
        ValidationError: If the value is not a known order status
    """
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError("Invalid status provided") from None


class OrderStatusService:
    """Service for vendors reading their orders and advancing their status."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self.order_repository = order_repository

    @traced("order.update_status")
    async def update_status(self, vendor_id: str, order_id: str, requested_status: str | None) -> Order:
        """Advance an order to the next pipeline status.

        Args:
            vendor_id: The authenticated vendor
            order_id: Order to update
            requested_status: Status the vendor asks for

        Returns:
            The updated order

        Raises:
            NotFound: If the order does not exist or belongs to another vendor
            ValidationError: If requested_status is not a known status
            ConflictError: If requested_status is not the single allowed next status
        """
        order = await self.get_vendor_order(vendor_id, order_id)
        requested = parse_status(requested_status)

        current = order.status
        allowed = next_status(current)

        if allowed is None:
            record_rejected_transition(current.value, requested.value)
            raise ConflictError(
                f"Invalid transition: {current.value} -> {requested.value}. "
                f"Order is already {current.value} and cannot change status"
            )

        if requested != allowed:
            record_rejected_transition(current.value, requested.value)
            raise ConflictError(
                f"Invalid transition: {current.value} -> {requested.value}. "
                f"Allowed: {current.value} -> {allowed.value}"
            )

        updated_at = datetime.now(UTC)
        try:
            await run_in_threadpool(
                self.order_repository.update_status, order.order_id, current, requested, updated_at
            )
        except ConcurrentModificationError:
            record_write_conflict("order")
            raise

        record_status_transition(current.value, requested.value)
        logger.info(
            f"Order {order.order_id} moved from {current.value} to {requested.value} "
            f"by vendor {vendor_id}"
        )
        return order.model_copy(update={"status": requested, "updated_at": updated_at})

    @traced("order.list_for_vendor")
    async def get_vendor_orders(self, vendor_id: str) -> list[Order]:
        """Get all orders placed with a vendor, newest first."""
        return await run_in_threadpool(self.order_repository.list_orders_for_vendor, vendor_id)

    async def get_vendor_order(self, vendor_id: str, order_id: str) -> Order:
        """Get one order placed with the vendor.

        Raises:
            NotFound: If the order does not exist or belongs to another vendor
        """
        order = await run_in_threadpool(self.order_repository.get_order, order_id)
        if order is None or order.vendor_id != vendor_id:
            raise NotFound("Order not found")
        return order
