"""Order data models.

An order is an immutable snapshot of a cart taken at placement time. Only the
status field changes afterwards, and only through the order status service.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from food_ordering_service.models.catalog_models import Money


class OrderStatus(str, Enum):
    """Fulfillment pipeline states, in pipeline order."""

    PENDING = "Pending"
    PREPARING = "Preparing"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CASH_ON_DELIVERY = "COD"


class OrderLine(BaseModel):
    """Frozen copy of a cart line at placement time."""

    item_id: str = Field(..., description="Menu item the line was created from")
    name: str = Field(..., description="Item name at placement time")
    price: Money = Field(..., description="Unit price at placement time", ge=0)
    quantity: int = Field(..., description="Number of units", ge=1)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Order(BaseModel):
    """Placed order.

    Stored in DynamoDB with order_id as partition key and queried through the
    customer_id-created_at-index and vendor_id-created_at-index GSIs.
    """

    order_id: str = Field(..., description="Unique order identifier")
    customer_id: str = Field(..., description="Customer who placed the order")
    customer_name: str = Field(..., description="Customer name at placement time")
    customer_phone: str = Field(..., description="Customer phone at placement time")
    delivery_address: str = Field(..., description="Delivery address at placement time")
    vendor_id: str = Field(..., description="Vendor fulfilling the order")
    items: list[OrderLine] = Field(..., description="Snapshotted order lines", min_length=1)
    subtotal: Money = Field(..., description="Sum of snapshot price times quantity", ge=0)
    delivery_price: Money = Field(..., description="Vendor delivery charge at placement", ge=0)
    total_amount: Money = Field(..., description="Subtotal plus delivery price", ge=0)
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Fulfillment status")
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH_ON_DELIVERY)
    created_at: datetime = Field(..., description="Placement timestamp")
    updated_at: datetime = Field(..., description="Last status change timestamp")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reference(self) -> str:
        """Short human-facing order reference, e.g. ``ORD-3F9A1C``."""
        return f"ORD-{self.order_id[-6:].upper()}"

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "delivery_address": self.delivery_address,
            "vendor_id": self.vendor_id,
            "items": [
                {
                    "item_id": line.item_id,
                    "name": line.name,
                    "price": line.price,
                    "quantity": line.quantity,
                }
                for line in self.items
            ],
            "subtotal": self.subtotal,
            "delivery_price": self.delivery_price,
            "total_amount": self.total_amount,
            "status": self.status.value,
            "payment_method": self.payment_method.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        return cls(
            order_id=item["order_id"],
            customer_id=item["customer_id"],
            customer_name=item["customer_name"],
            customer_phone=item["customer_phone"],
            delivery_address=item["delivery_address"],
            vendor_id=item["vendor_id"],
            items=[
                OrderLine(
                    item_id=line["item_id"],
                    name=line["name"],
                    price=Decimal(str(line["price"])),
                    quantity=int(line["quantity"]),
                )
                for line in item["items"]
            ],
            subtotal=Decimal(str(item["subtotal"])),
            delivery_price=Decimal(str(item["delivery_price"])),
            total_amount=Decimal(str(item["total_amount"])),
            status=OrderStatus(item["status"]),
            payment_method=PaymentMethod(item.get("payment_method", PaymentMethod.CASH_ON_DELIVERY.value)),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item.get("updated_at", item["created_at"])),
        )


class VendorSummary(BaseModel):
    """Vendor fields shown next to an order."""

    vendor_id: str
    shop_name: str
    logo: str | None = None
    address: str | None = None
    phone: str | None = None
    delivery_price: Money | None = None


class OrderWithVendor(Order):
    """Order joined with a summary of its vendor.

    ``vendor`` is None when the vendor account no longer exists.
    """

    vendor: VendorSummary | None = None
