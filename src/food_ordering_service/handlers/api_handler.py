"""FastAPI application for the cart and order endpoints."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from food_ordering_service.auth.api_dependencies import get_principal
from food_ordering_service.auth.token_verifier import Principal, Role, TokenVerifier
from food_ordering_service.errors import MarketplaceError
from food_ordering_service.models.cart_models import CartSummary, CartView
from food_ordering_service.models.order_models import Order, OrderWithVendor
from food_ordering_service.repositories.store import DynamoDBStore
from food_ordering_service.services.cart_service import CartService
from food_ordering_service.services.order_service import OrderService
from food_ordering_service.services.order_status_service import OrderStatusService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class CartItemRequest(BaseModel):
    """Body for adding or updating a cart line.

    Fields are optional so that missing values are reported by the service
    with its own validation messages.
    """

    item_id: str | None = None
    quantity: int | None = None


class RemoveCartItemRequest(BaseModel):
    item_id: str | None = None


class StatusUpdateRequest(BaseModel):
    new_status: str | None = None


class CartResponse(BaseModel):
    message: str
    cart: CartView


class CartWithSummaryResponse(BaseModel):
    cart: CartView
    summary: CartSummary


class OrderResponse(BaseModel):
    message: str | None = None
    order: Order


class CustomerOrderResponse(BaseModel):
    order: OrderWithVendor


class CustomerOrdersResponse(BaseModel):
    orders: list[OrderWithVendor]


class VendorOrdersResponse(BaseModel):
    orders: list[Order]


def create_app(
    cart_service: CartService,
    order_service: OrderService,
    order_status_service: OrderStatusService,
    token_verifier: TokenVerifier,
    store: DynamoDBStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        cart_service: Service for cart operations
        order_service: Service for placing and reading customer orders
        order_status_service: Service for vendor order reads and status changes
        token_verifier: Verifier for bearer tokens
        store: Store handle whose lifecycle the application owns, if any

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if store is not None:
            store.open()
            if not store.check_health():
                logger.warning("DynamoDB health check failed at startup")
        yield
        if store is not None:
            store.close()

    app = FastAPI(
        title="Food Ordering Service API",
        description="Cart management, order placement and order fulfillment tracking",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Store services in app state for access in route handlers
    app.state.cart_service = cart_service
    app.state.order_service = order_service
    app.state.order_status_service = order_status_service
    app.state.token_verifier = token_verifier
    app.state.store = store

    @app.exception_handler(MarketplaceError)
    async def handle_marketplace_error(request: Request, exc: MarketplaceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"message": f"Invalid request: {detail}"})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Server error"})

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse | JSONResponse:
        """Health check endpoint.

        Returns:
            Health status, including store reachability when a store is attached
        """
        if store is not None and not await run_in_threadpool(store.check_health):
            return JSONResponse(status_code=503, content={"status": "unhealthy"})
        return HealthResponse(status="healthy")

    def require_customer(authorization: str | None = Header(None)) -> Principal:
        """Dependency resolving the authenticated customer."""
        return get_principal(authorization, app.state.token_verifier, Role.CUSTOMER)

    def require_vendor(authorization: str | None = Header(None)) -> Principal:
        """Dependency resolving the authenticated vendor."""
        return get_principal(authorization, app.state.token_verifier, Role.VENDOR)

    # Cart

    @app.post("/cart/add", response_model=CartResponse, tags=["Cart"])
    async def add_item_to_cart(
        body: CartItemRequest,
        principal: Principal = Depends(require_customer),
    ) -> CartResponse:
        """Add an item to the cart, enforcing the single-vendor rule."""
        cart = await app.state.cart_service.add_item(
            principal.principal_id, body.item_id, body.quantity
        )
        return CartResponse(message="Item added to cart", cart=cart)

    @app.get("/cart", response_model=CartWithSummaryResponse, tags=["Cart"])
    async def get_cart(principal: Principal = Depends(require_customer)) -> CartWithSummaryResponse:
        """Get the cart with live prices and totals."""
        cart, summary = await app.state.cart_service.get_cart(principal.principal_id)
        return CartWithSummaryResponse(cart=cart, summary=summary)

    @app.post("/cart/remove", response_model=CartResponse, tags=["Cart"])
    async def remove_item_from_cart(
        body: RemoveCartItemRequest,
        principal: Principal = Depends(require_customer),
    ) -> CartResponse:
        cart = await app.state.cart_service.remove_item(principal.principal_id, body.item_id)
        return CartResponse(message="Item removed", cart=cart)

    @app.post("/cart/update", response_model=CartResponse, tags=["Cart"])
    async def update_cart_item_quantity(
        body: CartItemRequest,
        principal: Principal = Depends(require_customer),
    ) -> CartResponse:
        cart = await app.state.cart_service.update_quantity(
            principal.principal_id, body.item_id, body.quantity
        )
        return CartResponse(message="Quantity updated", cart=cart)

    @app.post("/cart/clear", response_model=CartResponse, tags=["Cart"])
    async def clear_cart(principal: Principal = Depends(require_customer)) -> CartResponse:
        cart = await app.state.cart_service.clear_cart(principal.principal_id)
        return CartResponse(message="Cart cleared", cart=cart)

    # Customer orders

    @app.post("/order/place", response_model=OrderResponse, status_code=201, tags=["Orders"])
    async def place_order(principal: Principal = Depends(require_customer)) -> OrderResponse:
        """Place a cash-on-delivery order from the cart."""
        order = await app.state.order_service.place_order(principal.principal_id)
        return OrderResponse(message="Order placed successfully", order=order)

    @app.get("/order/my-orders", response_model=CustomerOrdersResponse, tags=["Orders"])
    async def get_customer_orders(
        principal: Principal = Depends(require_customer),
    ) -> CustomerOrdersResponse:
        """Get the customer's orders, newest first."""
        orders = await app.state.order_service.get_customer_orders(principal.principal_id)
        return CustomerOrdersResponse(orders=orders)

    @app.get("/order/order/{order_id}", response_model=CustomerOrderResponse, tags=["Orders"])
    async def get_single_order(
        order_id: str,
        principal: Principal = Depends(require_customer),
    ) -> CustomerOrderResponse:
        order = await app.state.order_service.get_order(principal.principal_id, order_id)
        return CustomerOrderResponse(order=order)

    # Vendor orders

    @app.get("/vendor/orders", response_model=VendorOrdersResponse, tags=["Vendor Orders"])
    async def get_vendor_orders(
        principal: Principal = Depends(require_vendor),
    ) -> VendorOrdersResponse:
        """Get all orders placed with the vendor, newest first."""
        orders = await app.state.order_status_service.get_vendor_orders(principal.principal_id)
        return VendorOrdersResponse(orders=orders)

    @app.get("/vendor/orders/{order_id}", response_model=OrderResponse, tags=["Vendor Orders"])
    async def get_single_vendor_order(
        order_id: str,
        principal: Principal = Depends(require_vendor),
    ) -> OrderResponse:
        order = await app.state.order_status_service.get_vendor_order(
            principal.principal_id, order_id
        )
        return OrderResponse(order=order)

    @app.patch(
        "/vendor/orders/{order_id}/status",
        response_model=OrderResponse,
        tags=["Vendor Orders"],
    )
    async def update_order_status(
        order_id: str,
        body: StatusUpdateRequest,
        principal: Principal = Depends(require_vendor),
    ) -> OrderResponse:
        """Advance an order to the next fulfillment status."""
        order = await app.state.order_status_service.update_status(
            principal.principal_id, order_id, body.new_status
        )
        return OrderResponse(message="Order status updated successfully", order=order)

    return app
