"""Cart data models.

A cart holds references to menu items and quantities only. Names and prices
are resolved from the live catalog on every read and are only frozen when the
cart is converted into an order.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from food_ordering_service.models.catalog_models import MenuItem, Money


class CartLine(BaseModel):
    """A single line in a cart."""

    item_id: str = Field(..., description="Menu item referenced by this line")
    quantity: int = Field(..., description="Number of units", ge=1)


class Cart(BaseModel):
    """The single active cart of a customer.

    Stored in DynamoDB with customer_id as partition key. ``vendor_id`` caches
    the vendor of the cart's lines and is only set while the cart is non-empty.
    ``revision`` is bumped on every write and used for conditional updates.
    """

    customer_id: str = Field(..., description="Owning customer")
    items: list[CartLine] = Field(default_factory=list, description="Ordered cart lines")
    vendor_id: str | None = Field(None, description="Vendor of every line in the cart")
    revision: int = Field(default=0, description="Write counter for optimistic locking", ge=0)
    created_at: datetime = Field(..., description="Cart creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_line(self, item_id: str) -> CartLine | None:
        """Return the line for a menu item, or None if the item is not in the cart."""
        for line in self.items:
            if line.item_id == item_id:
                return line
        return None

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "customer_id": self.customer_id,
            "items": [{"item_id": line.item_id, "quantity": line.quantity} for line in self.items],
            "revision": self.revision,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if self.vendor_id is not None:
            item["vendor_id"] = self.vendor_id

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Cart":
        """Create Cart from DynamoDB item.

        DynamoDB returns numbers as Decimal, so quantities and revision are
        converted back to int.
        """
        return cls(
            customer_id=item["customer_id"],
            items=[
                CartLine(item_id=line["item_id"], quantity=int(line["quantity"]))
                for line in item.get("items", [])
            ],
            vendor_id=item.get("vendor_id"),
            revision=int(item.get("revision", 0)),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )


class ResolvedCartLine(BaseModel):
    """Cart line joined with the current catalog record.

    ``item`` is None when the menu item has been deleted since it was added.
    """

    item_id: str
    quantity: int
    item: MenuItem | None = None


class CartView(BaseModel):
    """Cart as returned to the customer."""

    customer_id: str
    vendor_id: str | None = None
    items: list[ResolvedCartLine] = Field(default_factory=list)
    updated_at: datetime


class CartSummary(BaseModel):
    """Totals computed from live catalog prices."""

    item_count: int = Field(..., description="Total quantity across all lines", ge=0)
    distinct_items: int = Field(..., description="Number of cart lines", ge=0)
    subtotal: Money = Field(..., description="Sum of current price times quantity", ge=0)
