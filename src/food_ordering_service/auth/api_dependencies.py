"""FastAPI dependencies for bearer token authentication.

Provides functions that extract the bearer token from the Authorization header
and resolve it to a principal of the required role.
"""

from food_ordering_service.auth.token_verifier import Principal, Role, TokenVerifier
from food_ordering_service.errors import Unauthorized


def get_bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Args:
        authorization: Raw Authorization header value

    Returns:
        str: The token

    Raises:
        Unauthorized: If the header is missing or not a bearer credential
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Unauthorized: Token missing")

    token = authorization[len("Bearer ") :].strip()
    if not token:
        raise Unauthorized("Unauthorized: Token missing")

    return token


def get_principal(authorization: str | None, verifier: TokenVerifier, role: Role) -> Principal:
    """Verify the bearer token and check the caller's role.

    Args:
        authorization: Raw Authorization header value
        verifier: TokenVerifier instance
        role: Role the endpoint requires

    Returns:
        Principal: The authenticated caller

    Raises:
        Unauthorized: If the token is missing, invalid, expired or has another role
    """
    principal = verifier.verify(get_bearer_token(authorization))

    if principal.role != role:
        raise Unauthorized("Unauthorized: Invalid role")

    return principal
