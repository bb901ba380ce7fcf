"""Service configuration loaded from environment variables."""

import os
from dataclasses import dataclass, field

from food_ordering_service.repositories.store import TableNames


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime configuration for the food ordering service."""

    jwt_secret: str
    environment: str = "development"
    log_level: str = "INFO"
    aws_region: str = "us-east-1"
    dynamodb_endpoint: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    table_names: TableNames = field(default_factory=TableNames)
    enable_observability: bool = True

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """Build configuration from the process environment.

        Returns:
            ServiceConfig populated from environment variables

        Raises:
            ValueError: If JWT_SECRET is not set
        """
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise ValueError("JWT_SECRET must be set in environment")

        defaults = TableNames()
        table_names = TableNames(
            carts=os.getenv("DYNAMODB_CARTS_TABLE", defaults.carts),
            orders=os.getenv("DYNAMODB_ORDERS_TABLE", defaults.orders),
            menu_items=os.getenv("DYNAMODB_MENU_ITEMS_TABLE", defaults.menu_items),
            vendors=os.getenv("DYNAMODB_VENDORS_TABLE", defaults.vendors),
            customers=os.getenv("DYNAMODB_CUSTOMERS_TABLE", defaults.customers),
        )

        return cls(
            jwt_secret=jwt_secret,
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            dynamodb_endpoint=os.getenv("DYNAMODB_ENDPOINT") or None,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            table_names=table_names,
            enable_observability=os.getenv("ENABLE_OBSERVABILITY", "true").lower() == "true",
        )
