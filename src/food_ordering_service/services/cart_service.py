"""Cart service enforcing the single-vendor cart rules."""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from fastapi.concurrency import run_in_threadpool

from food_ordering_service.errors import (
    ConcurrentModificationError,
    ConflictError,
    ItemUnavailableError,
    NotFound,
    StorageError,
    ValidationError,
)
from food_ordering_service.models.cart_models import (
    Cart,
    CartLine,
    CartSummary,
    CartView,
    ResolvedCartLine,
)
from food_ordering_service.observability import traced
from food_ordering_service.observability.metrics import (
    record_cart_vendor_conflict,
    record_write_conflict,
)
from food_ordering_service.repositories.catalog_repositories import CatalogRepository
from food_ordering_service.repositories.order_repositories import CartRepository

logger = logging.getLogger(__name__)


def _validate_item_id(item_id: str | None) -> str:
    if not item_id:
        raise ValidationError("item_id is required")
    return item_id


def _validate_quantity(quantity: int | None) -> int:
    if quantity is None or quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    return quantity


class CartService:
    """Service managing the single active cart of each customer.

    Every operation is scoped to the authenticated customer. A non-empty cart
    only ever holds items of one vendor, recorded on the cart as ``vendor_id``.
    All writes go through ``CartRepository.save_cart`` and fail with
    ConcurrentModificationError if another request wrote the cart first.
    """

    def __init__(
        self,
        catalog_repository: CatalogRepository,
        cart_repository: CartRepository,
    ) -> None:
        """Initialize the CartService.

        Args:
            catalog_repository: Repository for menu item lookups
            cart_repository: Repository for storing carts
        """
        self.catalog_repository = catalog_repository
        self.cart_repository = cart_repository

    async def get_or_create_cart(self, customer_id: str) -> Cart:
        """Return the customer's cart, creating an empty one on first use.

        Args:
            customer_id: The authenticated customer

        Returns:
            The stored cart
        """
        cart = await run_in_threadpool(self.cart_repository.get_cart, customer_id)
        if cart is not None:
            return cart

        now = datetime.now(UTC)
        cart = Cart(customer_id=customer_id, created_at=now, updated_at=now)
        if await run_in_threadpool(self.cart_repository.create_cart, cart):
            logger.info(f"Created cart for customer {customer_id}")
            return cart

        # Another request created the cart between our read and write
        existing = await run_in_threadpool(self.cart_repository.get_cart, customer_id)
        if existing is None:
            raise StorageError("Cart could not be created")
        return existing

    @traced("cart.add_item")
    async def add_item(self, customer_id: str, item_id: str | None, quantity: int | None) -> CartView:
        """Add a menu item to the cart, or increase its quantity if already present.

        Args:
            customer_id: The authenticated customer
            item_id: Menu item to add
            quantity: Units to add, at least 1

        Returns:
            The updated cart with lines resolved against the catalog

        Raises:
            ValidationError: If item_id is missing or quantity is below 1
            NotFound: If the menu item does not exist
            ItemUnavailableError: If the menu item is not available
            ConflictError: If the cart already holds another vendor's items
        """
        item_id = _validate_item_id(item_id)
        quantity = _validate_quantity(quantity)

        item = await run_in_threadpool(self.catalog_repository.get_menu_item, item_id)
        if item is None:
            raise NotFound("Item not found")
        if not item.available:
            raise ItemUnavailableError("Item is not available")

        cart = await self.get_or_create_cart(customer_id)

        cart_vendor_id = await self._cart_vendor(cart)
        if cart_vendor_id is not None and cart_vendor_id != item.vendor_id:
            record_cart_vendor_conflict()
            logger.info(
                f"Rejected item {item_id} for customer {customer_id}: cart belongs to vendor "
                f"{cart_vendor_id}, item to vendor {item.vendor_id}"
            )
            raise ConflictError("You can add items from only one vendor at a time.")

        lines = [line.model_copy() for line in cart.items]
        for line in lines:
            if line.item_id == item_id:
                line.quantity += quantity
                break
        else:
            lines.append(CartLine(item_id=item_id, quantity=quantity))

        saved = await self._save(
            cart.model_copy(
                update={
                    "items": lines,
                    "vendor_id": item.vendor_id,
                    "updated_at": datetime.now(UTC),
                }
            )
        )
        return await run_in_threadpool(self._resolve, saved)

    @traced("cart.remove_item")
    async def remove_item(self, customer_id: str, item_id: str | None) -> CartView:
        """Remove a line from the cart.

        Removing an item that is not in the cart leaves the cart unchanged.

        Raises:
            ValidationError: If item_id is missing
            NotFound: If the customer has no cart
        """
        item_id = _validate_item_id(item_id)

        cart = await run_in_threadpool(self.cart_repository.get_cart, customer_id)
        if cart is None:
            raise NotFound("Cart not found")

        if cart.find_line(item_id) is None:
            return await run_in_threadpool(self._resolve, cart)

        lines = [line for line in cart.items if line.item_id != item_id]
        saved = await self._save(
            cart.model_copy(
                update={
                    "items": lines,
                    "vendor_id": cart.vendor_id if lines else None,
                    "updated_at": datetime.now(UTC),
                }
            )
        )
        return await run_in_threadpool(self._resolve, saved)

    @traced("cart.update_quantity")
    async def update_quantity(
        self, customer_id: str, item_id: str | None, quantity: int | None
    ) -> CartView:
        """Set the quantity of a line already in the cart.

        Raises:
            ValidationError: If item_id is missing or quantity is below 1
            NotFound: If the customer has no cart or the item is not in it
        """
        item_id = _validate_item_id(item_id)
        quantity = _validate_quantity(quantity)

        cart = await run_in_threadpool(self.cart_repository.get_cart, customer_id)
        if cart is None:
            raise NotFound("Cart not found")

        if cart.find_line(item_id) is None:
            raise NotFound("Item not found in cart")

        lines = [
            CartLine(item_id=line.item_id, quantity=quantity if line.item_id == item_id else line.quantity)
            for line in cart.items
        ]
        saved = await self._save(cart.model_copy(update={"items": lines, "updated_at": datetime.now(UTC)}))
        return await run_in_threadpool(self._resolve, saved)

    @traced("cart.get")
    async def get_cart(self, customer_id: str) -> tuple[CartView, CartSummary]:
        """Return the cart with live prices and its summary.

        Args:
            customer_id: The authenticated customer

        Returns:
            Tuple of (resolved cart, summary computed from current catalog prices)
        """
        cart = await self.get_or_create_cart(customer_id)
        view = await run_in_threadpool(self._resolve, cart)
        return view, self.summarize(view)

    @traced("cart.clear")
    async def clear_cart(self, customer_id: str) -> CartView:
        """Remove every line from the cart.

        Raises:
            NotFound: If the customer has no cart
        """
        cart = await run_in_threadpool(self.cart_repository.get_cart, customer_id)
        if cart is None:
            raise NotFound("Cart not found")

        saved = await self._save(
            cart.model_copy(update={"items": [], "vendor_id": None, "updated_at": datetime.now(UTC)})
        )
        return await run_in_threadpool(self._resolve, saved)

    @staticmethod
    def summarize(view: CartView) -> CartSummary:
        """Compute cart totals from the resolved lines.

        Lines whose menu item was deleted count towards the quantities but
        not towards the subtotal.
        """
        subtotal = sum(
            (line.item.price * line.quantity for line in view.items if line.item is not None),
            Decimal("0"),
        )
        return CartSummary(
            item_count=sum(line.quantity for line in view.items),
            distinct_items=len(view.items),
            subtotal=subtotal,
        )

    async def _cart_vendor(self, cart: Cart) -> str | None:
        """Return the vendor owning the cart's lines, or None for an empty cart.

        Carts written without a cached ``vendor_id`` fall back to the vendor
        of the first line whose menu item still exists.
        """
        if cart.is_empty:
            return None
        if cart.vendor_id is not None:
            return cart.vendor_id

        for line in cart.items:
            item = await run_in_threadpool(self.catalog_repository.get_menu_item, line.item_id)
            if item is not None:
                return item.vendor_id
        return None

    def _resolve(self, cart: Cart) -> CartView:
        """Join cart lines with the current catalog records."""
        lines = []
        for line in cart.items:
            item = self.catalog_repository.get_menu_item(line.item_id)
            if item is None:
                logger.warning(
                    f"Cart of customer {cart.customer_id} references missing item {line.item_id}"
                )
            lines.append(ResolvedCartLine(item_id=line.item_id, quantity=line.quantity, item=item))

        return CartView(
            customer_id=cart.customer_id,
            vendor_id=cart.vendor_id,
            items=lines,
            updated_at=cart.updated_at,
        )

    async def _save(self, cart: Cart) -> Cart:
        try:
            return await run_in_threadpool(self.cart_repository.save_cart, cart)
        except ConcurrentModificationError:
            record_write_conflict("cart")
            raise
