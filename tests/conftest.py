"""Shared pytest fixtures and configuration for all tests."""

import os

os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from food_ordering_service.models.catalog_models import Customer, MenuItem, Vendor  # noqa: E402
from food_ordering_service.services.cart_service import CartService  # noqa: E402
from food_ordering_service.services.order_service import OrderService  # noqa: E402
from food_ordering_service.services.order_status_service import OrderStatusService  # noqa: E402
from tests.fakes import InMemoryCarts, InMemoryCatalog, InMemoryCustomers, InMemoryOrders  # noqa: E402


@pytest.fixture
def customer_id() -> str:
    """Fixture providing a standard test customer ID."""
    return "cust_123456"


@pytest.fixture
def vendor_id() -> str:
    """Fixture providing the vendor that owns most test menu items."""
    return "vend_burgers"


@pytest.fixture
def other_vendor_id() -> str:
    return "vend_pizza"


@pytest.fixture
def catalog(vendor_id: str, other_vendor_id: str) -> InMemoryCatalog:
    """Catalog with two vendors and a handful of menu items."""
    catalog = InMemoryCatalog()
    catalog.add_vendor(
        Vendor(
            id=vendor_id,
            name="Bob",
            shop_name="Bob's Burgers",
            phone="555-0100",
            address="1 Ocean Ave",
            delivery_price=Decimal("20"),
            logo="https://example.com/bob.png",
        )
    )
    catalog.add_vendor(
        Vendor(id=other_vendor_id, name="Pat", shop_name="Pat's Pizza", delivery_price=Decimal("0"))
    )
    catalog.add_menu_item(
        MenuItem(
            id="item_burger",
            vendor_id=vendor_id,
            name="Cheeseburger",
            description="Classic beef cheeseburger",
            price=Decimal("50"),
            category="burgers",
        )
    )
    catalog.add_menu_item(
        MenuItem(
            id="item_fries",
            vendor_id=vendor_id,
            name="Fries",
            price=Decimal("12.50"),
            category="sides",
        )
    )
    catalog.add_menu_item(
        MenuItem(
            id="item_shake",
            vendor_id=vendor_id,
            name="Milkshake",
            price=Decimal("8"),
            category="drinks",
            available=False,
        )
    )
    catalog.add_menu_item(
        MenuItem(
            id="item_pizza",
            vendor_id=other_vendor_id,
            name="Margherita",
            price=Decimal("40"),
            category="pizza",
        )
    )
    return catalog


@pytest.fixture
def customers(customer_id: str) -> InMemoryCustomers:
    customers = InMemoryCustomers()
    customers.customers[customer_id] = Customer(
        id=customer_id,
        name="Linda",
        email="linda@example.com",
        phone="555-0199",
        address="22 Wharf St",
    )
    customers.customers["cust_other"] = Customer(
        id="cust_other", name="Gene", phone="555-0111", address="3 Pier Rd"
    )
    return customers


@pytest.fixture
def carts() -> InMemoryCarts:
    return InMemoryCarts()


@pytest.fixture
def orders(carts: InMemoryCarts) -> InMemoryOrders:
    return InMemoryOrders(carts)


@pytest.fixture
def cart_service(catalog: InMemoryCatalog, carts: InMemoryCarts) -> CartService:
    return CartService(catalog_repository=catalog, cart_repository=carts)  # type: ignore[arg-type]


@pytest.fixture
def order_service(
    customers: InMemoryCustomers,
    catalog: InMemoryCatalog,
    carts: InMemoryCarts,
    orders: InMemoryOrders,
) -> OrderService:
    return OrderService(
        customer_repository=customers,  # type: ignore[arg-type]
        catalog_repository=catalog,  # type: ignore[arg-type]
        cart_repository=carts,  # type: ignore[arg-type]
        order_repository=orders,  # type: ignore[arg-type]
    )


@pytest.fixture
def order_status_service(orders: InMemoryOrders) -> OrderStatusService:
    return OrderStatusService(order_repository=orders)  # type: ignore[arg-type]
