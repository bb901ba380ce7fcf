"""OpenTelemetry instrumentation and observability utilities."""

from food_ordering_service.observability.config import configure_logging, setup_observability
from food_ordering_service.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
