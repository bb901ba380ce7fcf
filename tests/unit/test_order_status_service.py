"""Unit tests for the order status state machine."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from food_ordering_service.errors import (
    ConcurrentModificationError,
    ConflictError,
    NotFound,
    ValidationError,
)
from food_ordering_service.models.order_models import Order, OrderLine, OrderStatus
from food_ordering_service.services.order_status_service import (
    OrderStatusService,
    next_status,
    parse_status,
)
from tests.fakes import InMemoryOrders


def _place(orders: InMemoryOrders, vendor_id: str, status: OrderStatus = OrderStatus.PENDING) -> Order:
    created = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
    order = Order(
        order_id=f"order_{len(orders.orders) + 1}",
        customer_id="cust_1",
        customer_name="Linda",
        customer_phone="555-0199",
        delivery_address="22 Wharf St",
        vendor_id=vendor_id,
        items=[OrderLine(item_id="item_burger", name="Cheeseburger", price=Decimal("50"), quantity=1)],
        subtotal=Decimal("50"),
        delivery_price=Decimal("20"),
        total_amount=Decimal("70"),
        status=status,
        created_at=created,
        updated_at=created,
    )
    orders.orders[order.order_id] = order
    return order


@pytest.mark.unit
class TestTransitionTable:
    """Tests for the linear pipeline helpers."""

    @pytest.mark.parametrize(
        ("current", "expected"),
        [
            (OrderStatus.PENDING, OrderStatus.PREPARING),
            (OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY),
            (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED),
            (OrderStatus.DELIVERED, None),
        ],
    )
    def test_next_status(self, current: OrderStatus, expected: OrderStatus | None) -> None:
        assert next_status(current) is expected

    def test_parse_status(self) -> None:
        assert parse_status("Out for Delivery") is OrderStatus.OUT_FOR_DELIVERY

    @pytest.mark.parametrize("value", ["Cancelled", "pending", "", None])
    def test_parse_unknown_status(self, value: str | None) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_status(value)

        assert exc_info.value.message == "Invalid status provided"


@pytest.mark.unit
class TestUpdateStatus:
    """Tests for OrderStatusService.update_status."""

    @pytest.mark.asyncio
    async def test_walks_full_pipeline(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        """Test that an order can be advanced one step at a time to Delivered."""
        order = _place(orders, vendor_id)

        for status in ("Preparing", "Out for Delivery", "Delivered"):
            updated = await order_status_service.update_status(vendor_id, order.order_id, status)
            assert updated.status.value == status
            assert orders.orders[order.order_id].status.value == status

        assert orders.orders[order.order_id].updated_at > order.created_at

    @pytest.mark.asyncio
    async def test_skipping_a_step_is_rejected(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        order = _place(orders, vendor_id)

        with pytest.raises(ConflictError) as exc_info:
            await order_status_service.update_status(vendor_id, order.order_id, "Delivered")

        assert exc_info.value.message == (
            "Invalid transition: Pending -> Delivered. Allowed: Pending -> Preparing"
        )
        assert orders.orders[order.order_id].status is OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_moving_backwards_is_rejected(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        order = _place(orders, vendor_id, OrderStatus.OUT_FOR_DELIVERY)

        with pytest.raises(ConflictError):
            await order_status_service.update_status(vendor_id, order.order_id, "Preparing")

    @pytest.mark.asyncio
    async def test_same_status_is_rejected(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        order = _place(orders, vendor_id, OrderStatus.PREPARING)

        with pytest.raises(ConflictError):
            await order_status_service.update_status(vendor_id, order.order_id, "Preparing")

    @pytest.mark.asyncio
    async def test_delivered_is_terminal(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        """Test that a delivered order cannot change status."""
        order = _place(orders, vendor_id, OrderStatus.DELIVERED)

        with pytest.raises(ConflictError) as exc_info:
            await order_status_service.update_status(vendor_id, order.order_id, "Pending")

        assert exc_info.value.message == (
            "Invalid transition: Delivered -> Pending. "
            "Order is already Delivered and cannot change status"
        )

    @pytest.mark.asyncio
    async def test_unknown_status(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        order = _place(orders, vendor_id)

        with pytest.raises(ValidationError):
            await order_status_service.update_status(vendor_id, order.order_id, "Cancelled")

    @pytest.mark.asyncio
    async def test_order_of_other_vendor(
        self,
        order_status_service: OrderStatusService,
        orders: InMemoryOrders,
        vendor_id: str,
        other_vendor_id: str,
    ) -> None:
        """Test that a vendor cannot see or change another vendor's order."""
        order = _place(orders, vendor_id)

        with pytest.raises(NotFound) as exc_info:
            await order_status_service.update_status(other_vendor_id, order.order_id, "Preparing")

        assert exc_info.value.message == "Order not found"
        assert orders.orders[order.order_id].status is OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_ownership_checked_before_status(
        self, order_status_service: OrderStatusService, vendor_id: str
    ) -> None:
        with pytest.raises(NotFound):
            await order_status_service.update_status(vendor_id, "missing", "Bogus")

    @pytest.mark.asyncio
    async def test_concurrent_status_change(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        """Test that a status written after the read causes a conflict."""
        order = _place(orders, vendor_id)
        orders.orders[order.order_id] = order.model_copy(update={"status": OrderStatus.PREPARING})

        with patch.object(orders, "get_order", return_value=order):
            with pytest.raises(ConcurrentModificationError):
                await order_status_service.update_status(vendor_id, order.order_id, "Preparing")

        assert orders.orders[order.order_id].status is OrderStatus.PREPARING


@pytest.mark.unit
class TestVendorOrders:
    """Tests for vendor order reads."""

    @pytest.mark.asyncio
    async def test_lists_only_own_orders(
        self,
        order_status_service: OrderStatusService,
        orders: InMemoryOrders,
        vendor_id: str,
        other_vendor_id: str,
    ) -> None:
        own = _place(orders, vendor_id)
        _place(orders, other_vendor_id)

        result = await order_status_service.get_vendor_orders(vendor_id)

        assert [order.order_id for order in result] == [own.order_id]

    @pytest.mark.asyncio
    async def test_get_vendor_order(
        self, order_status_service: OrderStatusService, orders: InMemoryOrders, vendor_id: str
    ) -> None:
        order = _place(orders, vendor_id)

        assert (await order_status_service.get_vendor_order(vendor_id, order.order_id)) == order

    @pytest.mark.asyncio
    async def test_get_vendor_order_missing(
        self, order_status_service: OrderStatusService, vendor_id: str
    ) -> None:
        with pytest.raises(NotFound):
            await order_status_service.get_vendor_order(vendor_id, "missing")
