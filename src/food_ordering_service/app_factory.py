"""Application factory wiring configuration, store, repositories and services."""

import logging

from fastapi import FastAPI

from food_ordering_service.auth.token_verifier import TokenVerifier
from food_ordering_service.config import ServiceConfig
from food_ordering_service.handlers.api_handler import create_app
from food_ordering_service.observability import configure_logging, setup_observability
from food_ordering_service.repositories.catalog_repositories import (
    CatalogRepository,
    CustomerRepository,
)
from food_ordering_service.repositories.order_repositories import CartRepository, OrderRepository
from food_ordering_service.repositories.store import DynamoDBStore
from food_ordering_service.services.cart_service import CartService
from food_ordering_service.services.order_service import OrderService
from food_ordering_service.services.order_status_service import OrderStatusService

logger = logging.getLogger(__name__)


def create_store(config: ServiceConfig) -> DynamoDBStore:
    """Create and open the DynamoDB store described by the configuration.

    Args:
        config: Service configuration

    Returns:
        Open DynamoDBStore
    """
    store = DynamoDBStore(
        table_names=config.table_names,
        region=config.aws_region,
        endpoint_url=config.dynamodb_endpoint,
        access_key=config.aws_access_key_id,
        secret_key=config.aws_secret_access_key,
    )
    store.open()
    return store


def create_application(config: ServiceConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Loads configuration and configures logging
    2. Opens the DynamoDB store
    3. Initializes repositories
    4. Creates services
    5. Creates the FastAPI app
    6. Sets up observability

    Args:
        config: Configuration to use, read from the environment if None

    Returns:
        Configured FastAPI application instance
    """
    config = config or ServiceConfig.from_env()
    configure_logging(config.log_level)

    logger.info("Initializing food ordering service...")

    store = create_store(config)
    tables = config.table_names

    catalog_repository = CatalogRepository(
        dynamodb_resource=store.resource,
        menu_items_table_name=tables.menu_items,
        vendors_table_name=tables.vendors,
    )
    customer_repository = CustomerRepository(
        dynamodb_resource=store.resource, table_name=tables.customers
    )
    cart_repository = CartRepository(dynamodb_resource=store.resource, table_name=tables.carts)
    order_repository = OrderRepository(
        dynamodb_resource=store.resource,
        table_name=tables.orders,
        carts_table_name=tables.carts,
    )

    logger.info(f"Repositories configured - carts: {tables.carts}, orders: {tables.orders}")

    cart_service = CartService(
        catalog_repository=catalog_repository,
        cart_repository=cart_repository,
    )
    order_service = OrderService(
        customer_repository=customer_repository,
        catalog_repository=catalog_repository,
        cart_repository=cart_repository,
        order_repository=order_repository,
    )
    order_status_service = OrderStatusService(order_repository=order_repository)

    logger.info("Services initialized")

    app = create_app(
        cart_service=cart_service,
        order_service=order_service,
        order_status_service=order_status_service,
        token_verifier=TokenVerifier(secret=config.jwt_secret),
        store=store,
    )

    if config.enable_observability:
        setup_observability(app, enable_exporters=config.environment != "test")

    logger.info("Food ordering service initialized successfully")

    return app
