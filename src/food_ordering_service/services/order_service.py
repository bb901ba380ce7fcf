"""Order service converting carts into immutable orders."""

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from fastapi.concurrency import run_in_threadpool

from food_ordering_service.errors import (
    ConcurrentModificationError,
    ConflictError,
    NotFound,
    ValidationError,
)
from food_ordering_service.models.cart_models import Cart
from food_ordering_service.models.catalog_models import MenuItem, Vendor
from food_ordering_service.models.order_models import (
    Order,
    OrderLine,
    OrderStatus,
    OrderWithVendor,
    PaymentMethod,
    VendorSummary,
)
from food_ordering_service.observability import traced
from food_ordering_service.observability.metrics import record_order_placed, record_write_conflict
from food_ordering_service.repositories.catalog_repositories import (
    CatalogRepository,
    CustomerRepository,
)
from food_ordering_service.repositories.order_repositories import CartRepository, OrderRepository

logger = logging.getLogger(__name__)


class OrderService:
    """Service for placing orders and reading a customer's orders.

    Placement snapshots each cart line's current name and price into the
    order. The snapshot is never re-derived from the catalog afterwards, so
    later menu changes do not affect placed orders.
    """

    def __init__(
        self,
        customer_repository: CustomerRepository,
        catalog_repository: CatalogRepository,
        cart_repository: CartRepository,
        order_repository: OrderRepository,
    ) -> None:
        """Initialize the OrderService.

        Args:
            customer_repository: Repository for customer profiles
            catalog_repository: Repository for menu items and vendors
            cart_repository: Repository for carts
            order_repository: Repository for orders
        """
        self.customer_repository = customer_repository
        self.catalog_repository = catalog_repository
        self.cart_repository = cart_repository
        self.order_repository = order_repository

    @traced("order.place")
    async def place_order(self, customer_id: str) -> Order:
        """Place a cash-on-delivery order from the customer's cart.

        This method orchestrates the placement flow:
        1. Resolve the customer profile for delivery details
        2. Load the cart and resolve every line against the catalog
        3. Resolve the vendor of the cart
        4. Snapshot lines and compute subtotal, delivery price and total
        5. Store the order and empty the cart in one transaction

        Args:
            customer_id: The authenticated customer

        Returns:
            The created order

        Raises:
            NotFound: If the customer, a cart item or the vendor no longer exists
            ValidationError: If the cart is empty
            ConflictError: If the cart holds items of more than one vendor
            ConcurrentModificationError: If the cart changed during placement
        """
        # Step 1: Customer details
        customer = await run_in_threadpool(self.customer_repository.get_customer, customer_id)
        if customer is None:
            raise NotFound("Customer not found")

        # Step 2: Cart with current menu data
        cart = await run_in_threadpool(self.cart_repository.get_cart, customer_id)
        if cart is None or cart.is_empty:
            raise ValidationError("Your cart is empty")

        menu_items = await run_in_threadpool(self._resolve_menu_items, cart)

        # Step 3: Vendor
        vendor_id = cart.vendor_id or menu_items[0].vendor_id
        if any(item.vendor_id != vendor_id for item in menu_items):
            raise ConflictError("You can add items from only one vendor at a time.")
        vendor = await run_in_threadpool(self.catalog_repository.get_vendor, vendor_id)
        if vendor is None:
            raise NotFound("Vendor not found")

        # Step 4: Snapshot lines and price the order
        order_lines = [
            OrderLine(item_id=item.id, name=item.name, price=item.price, quantity=line.quantity)
            for line, item in zip(cart.items, menu_items, strict=True)
        ]
        subtotal = sum((line.line_total for line in order_lines), Decimal("0"))
        delivery_price = vendor.delivery_price or Decimal("0")

        now = datetime.now(UTC)
        order = Order(
            order_id=uuid.uuid4().hex,
            customer_id=customer_id,
            customer_name=customer.name,
            customer_phone=customer.phone,
            delivery_address=customer.address,
            vendor_id=vendor.id,
            items=order_lines,
            subtotal=subtotal,
            delivery_price=delivery_price,
            total_amount=subtotal + delivery_price,
            status=OrderStatus.PENDING,
            payment_method=PaymentMethod.CASH_ON_DELIVERY,
            created_at=now,
            updated_at=now,
        )

        # Step 5: Store order and empty the cart atomically
        cleared_cart = cart.model_copy(update={"items": [], "vendor_id": None, "updated_at": now})
        try:
            await run_in_threadpool(
                self.order_repository.create_order_and_clear_cart, order, cleared_cart
            )
        except ConcurrentModificationError:
            record_write_conflict("cart")
            raise

        record_order_placed(vendor.id, order.total_amount)
        logger.info(
            f"Order {order.order_id} placed by customer {customer_id} with vendor {vendor.id}, "
            f"total {order.total_amount}"
        )
        return order

    @traced("order.list_for_customer")
    async def get_customer_orders(self, customer_id: str) -> list[OrderWithVendor]:
        """Get all orders of a customer, newest first, with vendor details.

        Args:
            customer_id: The authenticated customer

        Returns:
            List of orders, empty list if none found
        """
        orders = await run_in_threadpool(self.order_repository.list_orders_for_customer, customer_id)
        return await run_in_threadpool(self._attach_vendor_summaries, orders)

    def _attach_vendor_summaries(self, orders: list[Order]) -> list[OrderWithVendor]:
        vendors: dict[str, Vendor | None] = {}
        results = []
        for order in orders:
            if order.vendor_id not in vendors:
                vendors[order.vendor_id] = self.catalog_repository.get_vendor(order.vendor_id)
            vendor = vendors[order.vendor_id]

            summary = None
            if vendor is not None:
                summary = VendorSummary(
                    vendor_id=vendor.id,
                    shop_name=vendor.shop_name,
                    logo=vendor.logo,
                    delivery_price=vendor.delivery_price,
                )
            results.append(_with_vendor(order, summary))

        return results

    @traced("order.get_for_customer")
    async def get_order(self, customer_id: str, order_id: str) -> OrderWithVendor:
        """Get one of the customer's orders with vendor contact details.

        Orders of other customers are reported as not found.

        Raises:
            NotFound: If the order does not exist or belongs to someone else
        """
        order = await run_in_threadpool(self.order_repository.get_order, order_id)
        if order is None or order.customer_id != customer_id:
            raise NotFound("Order not found")

        vendor = await run_in_threadpool(self.catalog_repository.get_vendor, order.vendor_id)
        summary = None
        if vendor is not None:
            summary = VendorSummary(
                vendor_id=vendor.id,
                shop_name=vendor.shop_name,
                logo=vendor.logo,
                address=vendor.address,
                phone=vendor.phone,
            )

        return _with_vendor(order, summary)

    def _resolve_menu_items(self, cart: Cart) -> list[MenuItem]:
        """Fetch the current catalog record for every cart line.

        Raises:
            NotFound: If a line's menu item has been deleted
        """
        items = []
        for line in cart.items:
            item = self.catalog_repository.get_menu_item(line.item_id)
            if item is None:
                raise NotFound(f"Menu item {line.item_id} in your cart no longer exists")
            items.append(item)
        return items


def _with_vendor(order: Order, vendor: VendorSummary | None) -> OrderWithVendor:
    return OrderWithVendor.model_validate(
        {**order.model_dump(exclude={"reference"}), "vendor": vendor}
    )
