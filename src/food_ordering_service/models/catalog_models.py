"""Catalog and customer data models.

These records are owned by the vendor menu and account services. The cart and
order subsystem only reads them, so only the DynamoDB read conversion is
provided here.
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, Field, PlainSerializer

# Amounts are kept as Decimal and written to JSON responses as numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class MenuItem(BaseModel):
    """Menu item listed by a vendor."""

    id: str = Field(..., description="Unique identifier for the menu item")
    vendor_id: str = Field(..., description="Vendor this item belongs to")
    name: str = Field(..., description="Item name")
    description: str | None = Field(None, description="Item description")
    price: Money = Field(..., description="Current item price", ge=0)
    category: str = Field(..., description="Menu category")
    available: bool = Field(default=True, description="Whether item can be ordered")
    image_url: str | None = Field(None, description="URL to item image")

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        return cls(
            id=item["item_id"],
            vendor_id=item["vendor_id"],
            name=item["name"],
            description=item.get("description"),
            price=Decimal(str(item["price"])),
            category=item.get("category", ""),
            available=item.get("available", True),
            image_url=item.get("image_url"),
        )


class Vendor(BaseModel):
    """Vendor (shop) selling menu items."""

    id: str = Field(..., description="Unique identifier for the vendor")
    name: str = Field(..., description="Owner name")
    shop_name: str = Field(..., description="Public shop name")
    phone: str | None = Field(None, description="Shop phone number")
    address: str | None = Field(None, description="Shop address")
    delivery_price: Money = Field(
        default=Decimal("0"), description="Flat delivery charge per order", ge=0
    )
    logo: str | None = Field(None, description="URL to shop logo")

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Vendor":
        """Create Vendor from DynamoDB item.

        A missing or null delivery price is read as zero.
        """
        delivery_price = item.get("delivery_price")

        return cls(
            id=item["vendor_id"],
            name=item.get("name", ""),
            shop_name=item.get("shop_name", ""),
            phone=item.get("phone"),
            address=item.get("address"),
            delivery_price=Decimal(str(delivery_price)) if delivery_price is not None else Decimal("0"),
            logo=item.get("logo"),
        )


class Customer(BaseModel):
    """Customer profile used to address deliveries."""

    id: str
    name: str
    email: str | None = None
    phone: str = ""
    address: str = ""

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Customer":
        return cls(
            id=item["customer_id"],
            name=item.get("name") or "",
            email=item.get("email"),
            phone=item.get("phone") or "",
            address=item.get("address") or "",
        )
