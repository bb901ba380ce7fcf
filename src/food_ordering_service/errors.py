"""Error taxonomy for the cart and order subsystem.

Services raise these exceptions; the API layer renders them as
``{"message": ...}`` responses with the error's HTTP status code.
"""


class MarketplaceError(Exception):
    """Base class for all expected service errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Malformed or missing input."""

    status_code = 400


class ItemUnavailableError(ValidationError):
    """The requested menu item is switched off by its vendor."""


class Unauthorized(MarketplaceError):
    """Missing, invalid, expired or role-mismatched credential."""

    status_code = 401


class NotFound(MarketplaceError):
    """Entity is absent or not owned by the caller."""

    status_code = 404


class ConflictError(MarketplaceError):
    """Business rule violation (multi-vendor cart, illegal status transition)."""

    status_code = 400


class ConcurrentModificationError(ConflictError):
    """A conditional write lost against a concurrent request."""

    status_code = 409


class StorageError(MarketplaceError):
    """Unexpected failure talking to the backing store."""

    status_code = 500
