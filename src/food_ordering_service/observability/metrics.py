"""Custom metrics for the food ordering service."""

from decimal import Decimal

from opentelemetry import metrics

meter = metrics.get_meter("food-ordering-svc")

orders_placed_counter = meter.create_counter(
    name="orders_placed_total",
    description="Total number of orders placed by vendor",
    unit="1",
)

order_value_histogram = meter.create_histogram(
    name="order_total_amount",
    description="Total amount of placed orders, delivery included",
    unit="1",
)

status_transition_counter = meter.create_counter(
    name="order_status_transitions_total",
    description="Order status changes by source and target status",
    unit="1",
)

rejected_transition_counter = meter.create_counter(
    name="order_status_rejections_total",
    description="Rejected order status change requests",
    unit="1",
)

cart_vendor_conflict_counter = meter.create_counter(
    name="cart_vendor_conflicts_total",
    description="Cart additions rejected because the item belongs to another vendor",
    unit="1",
)

write_conflict_counter = meter.create_counter(
    name="write_conflicts_total",
    description="Conditional writes lost to a concurrent request",
    unit="1",
)


def record_order_placed(vendor_id: str, total_amount: Decimal) -> None:
    """Record a successfully placed order.

    Args:
        vendor_id: Vendor receiving the order
        total_amount: Order total including delivery
    """
    orders_placed_counter.add(1, {"vendor_id": vendor_id})
    order_value_histogram.record(float(total_amount), {"vendor_id": vendor_id})


def record_status_transition(from_status: str, to_status: str) -> None:
    status_transition_counter.add(1, {"from_status": from_status, "to_status": to_status})


def record_rejected_transition(from_status: str, requested_status: str) -> None:
    rejected_transition_counter.add(
        1, {"from_status": from_status, "requested_status": requested_status}
    )


def record_cart_vendor_conflict() -> None:
    cart_vendor_conflict_counter.add(1)


def record_write_conflict(entity: str) -> None:
    """Record a lost conditional write.

    Args:
        entity: The record type that was contended (e.g., "cart", "order")
    """
    write_conflict_counter.add(1, {"entity": entity})
