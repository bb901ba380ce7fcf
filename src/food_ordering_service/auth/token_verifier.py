"""Bearer token verification.

Tokens are HS256 JWTs carrying ``id`` (principal id), ``role`` (``customer``
or ``vendor``) and ``exp`` claims, as issued by the account service at signup
and login. Verification uses the HMAC primitives from ``cryptography``.
"""

import base64
import binascii
import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from food_ordering_service.errors import Unauthorized

DEFAULT_TOKEN_LIFETIME_SECONDS = 7 * 24 * 60 * 60


class Role(str, Enum):
    """Principal roles."""

    CUSTOMER = "customer"
    VENDOR = "vendor"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller extracted from a verified token."""

    principal_id: str
    role: Role


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64decode(data: str) -> bytes:
    padding = -len(data) % 4
    return base64.urlsafe_b64decode(data + "=" * padding)


class TokenVerifier:
    """Verifies and issues HS256 bearer tokens.

    The core trusts the principal id of any token this verifier accepts.
    """

    def __init__(self, secret: str, leeway_seconds: int = 0) -> None:
        """Initialize verifier with the shared signing secret.

        Args:
            secret: HMAC secret shared with the account service
            leeway_seconds: Clock skew tolerated when checking expiry

        Raises:
            ValueError: If secret is empty
        """
        if not secret:
            raise ValueError("A token signing secret must be provided")

        self._key = secret.encode()
        self.leeway_seconds = leeway_seconds

    def verify(self, token: str) -> Principal:
        """Verify a token and return its principal.

        Checks:
        1. Format (3 parts) and HS256 header
        2. Signature
        3. Expiration
        4. Principal id and role claims

        Args:
            token: Encoded JWT

        Returns:
            Principal: The authenticated caller

        Raises:
            Unauthorized: If the token is malformed, badly signed, expired or incomplete
        """
        try:
            header_b64, payload_b64, signature_b64 = token.split(".")
            header = json.loads(_b64decode(header_b64))
            signature = _b64decode(signature_b64)
        except (ValueError, binascii.Error):
            raise Unauthorized("Unauthorized: Token invalid or expired") from None

        if not isinstance(header, dict) or header.get("alg") != "HS256":
            raise Unauthorized("Unauthorized: Token invalid or expired")

        signer = hmac.HMAC(self._key, hashes.SHA256())
        signer.update(f"{header_b64}.{payload_b64}".encode())
        try:
            signer.verify(signature)
        except InvalidSignature:
            raise Unauthorized("Unauthorized: Token invalid or expired") from None

        try:
            payload = json.loads(_b64decode(payload_b64))
        except (ValueError, binascii.Error):
            raise Unauthorized("Unauthorized: Token invalid or expired") from None

        if not isinstance(payload, dict):
            raise Unauthorized("Unauthorized: Token invalid or expired")

        exp = payload.get("exp")
        if not isinstance(exp, int | float) or exp + self.leeway_seconds < time.time():
            raise Unauthorized("Unauthorized: Token invalid or expired")

        principal_id = payload.get("id")
        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise Unauthorized("Unauthorized: Invalid role") from None

        if not principal_id or not isinstance(principal_id, str):
            raise Unauthorized("Unauthorized: Token invalid or expired")

        return Principal(principal_id=principal_id, role=role)

    def issue(
        self,
        principal_id: str,
        role: Role,
        expires_in_seconds: int = DEFAULT_TOKEN_LIFETIME_SECONDS,
    ) -> str:
        """Sign a token for a principal.

        Used by local tooling and tests; production tokens come from the
        account service.

        Args:
            principal_id: Customer or vendor id
            role: Principal role
            expires_in_seconds: Token lifetime

        Returns:
            str: Encoded JWT
        """
        now = int(time.time())
        payload: dict[str, Any] = {
            "id": principal_id,
            "role": role.value,
            "iat": now,
            "exp": now + expires_in_seconds,
        }

        header_b64 = _b64encode(json.dumps({"alg": "HS256", "typ": "JWT"}, separators=(",", ":")).encode())
        payload_b64 = _b64encode(json.dumps(payload, separators=(",", ":")).encode())

        signer = hmac.HMAC(self._key, hashes.SHA256())
        signer.update(f"{header_b64}.{payload_b64}".encode())
        signature_b64 = _b64encode(signer.finalize())

        return f"{header_b64}.{payload_b64}.{signature_b64}"
