"""Dependency factory for the Lambda handler.

The application and its DynamoDB store are built once per Lambda container
during cold start and reused across warm invocations.
"""

import logging
import os

from fastapi import FastAPI

from food_ordering_service.app_factory import create_application
from food_ordering_service.config import ServiceConfig
from food_ordering_service.observability import configure_logging

logger = logging.getLogger(__name__)

# Cached for Lambda container reuse
_fastapi_app: FastAPI | None = None


def get_fastapi_app(config: ServiceConfig | None = None) -> FastAPI:
    """Create or retrieve the cached FastAPI application.

    Args:
        config: Configuration to use on first creation, read from the environment if None

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    _fastapi_app = create_application(config)

    logger.info("FastAPI application initialized")
    return _fastapi_app


def reset_cached_app() -> None:
    """Drop the cached application, closing its store."""
    global _fastapi_app

    if _fastapi_app is not None and _fastapi_app.state.store is not None:
        _fastapi_app.state.store.close()
    _fastapi_app = None


def initialize_lambda_environment() -> None:
    """Initialize Lambda environment with logging.

    Should be called once during Lambda cold start.
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Lambda environment initialized")
