"""Unit tests for bearer token verification."""

import base64
import json
import time

import pytest
from cryptography.hazmat.primitives import hashes, hmac

from food_ordering_service.auth.token_verifier import Principal, Role, TokenVerifier
from food_ordering_service.errors import Unauthorized

SECRET = "test-signing-secret"


def _segment(data: dict[str, object]) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


def _sign(payload: dict[str, object]) -> str:
    """Sign an arbitrary payload with the test secret."""
    header_b64 = _segment({"alg": "HS256", "typ": "JWT"})
    payload_b64 = _segment(payload)
    signer = hmac.HMAC(SECRET.encode(), hashes.SHA256())
    signer.update(f"{header_b64}.{payload_b64}".encode())
    signature = base64.urlsafe_b64encode(signer.finalize()).rstrip(b"=").decode()
    return f"{header_b64}.{payload_b64}.{signature}"


@pytest.mark.unit
class TestTokenVerifier:
    """Test suite for TokenVerifier."""

    @pytest.fixture
    def verifier(self) -> TokenVerifier:
        return TokenVerifier(secret=SECRET)

    def test_requires_secret(self) -> None:
        """Test that an empty secret is rejected at construction."""
        with pytest.raises(ValueError, match="secret must be provided"):
            TokenVerifier(secret="")

    def test_issue_and_verify(self, verifier: TokenVerifier) -> None:
        token = verifier.issue("cust_1", Role.CUSTOMER)

        assert verifier.verify(token) == Principal(principal_id="cust_1", role=Role.CUSTOMER)

    def test_vendor_role(self, verifier: TokenVerifier) -> None:
        principal = verifier.verify(verifier.issue("vend_1", Role.VENDOR))

        assert principal.role is Role.VENDOR

    def test_expired_token(self, verifier: TokenVerifier) -> None:
        """Test that expired tokens are rejected."""
        token = verifier.issue("cust_1", Role.CUSTOMER, expires_in_seconds=-10)

        with pytest.raises(Unauthorized) as exc_info:
            verifier.verify(token)

        assert exc_info.value.message == "Unauthorized: Token invalid or expired"

    def test_leeway_accepts_recently_expired_token(self) -> None:
        verifier = TokenVerifier(secret=SECRET, leeway_seconds=60)
        token = verifier.issue("cust_1", Role.CUSTOMER, expires_in_seconds=-10)

        assert verifier.verify(token).principal_id == "cust_1"

    def test_wrong_secret(self, verifier: TokenVerifier) -> None:
        """Test that a token signed with another secret is rejected."""
        token = TokenVerifier(secret="other-secret").issue("cust_1", Role.CUSTOMER)

        with pytest.raises(Unauthorized):
            verifier.verify(token)

    def test_tampered_payload(self, verifier: TokenVerifier) -> None:
        """Test that changing the payload invalidates the signature."""
        header, _, signature = verifier.issue("cust_1", Role.CUSTOMER).split(".")
        payload = _segment({"id": "cust_2", "role": "customer", "exp": int(time.time()) + 60})

        with pytest.raises(Unauthorized):
            verifier.verify(f"{header}.{payload}.{signature}")

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "!!!.???.***"])
    def test_malformed_token(self, verifier: TokenVerifier, token: str) -> None:
        with pytest.raises(Unauthorized):
            verifier.verify(token)

    def test_rejects_other_algorithms(self, verifier: TokenVerifier) -> None:
        """Test that unsigned tokens are rejected."""
        header = _segment({"alg": "none", "typ": "JWT"})
        payload = _segment({"id": "cust_1", "role": "customer", "exp": int(time.time()) + 60})

        with pytest.raises(Unauthorized):
            verifier.verify(f"{header}.{payload}.")

    def test_unknown_role(self, verifier: TokenVerifier) -> None:
        """Test that a correctly signed token with an unknown role is rejected."""
        token = _sign({"id": "adm_1", "role": "admin", "exp": int(time.time()) + 60})

        with pytest.raises(Unauthorized) as exc_info:
            verifier.verify(token)

        assert exc_info.value.message == "Unauthorized: Invalid role"

    def test_missing_principal_id(self, verifier: TokenVerifier) -> None:
        token = _sign({"role": "customer", "exp": int(time.time()) + 60})

        with pytest.raises(Unauthorized):
            verifier.verify(token)

    def test_missing_expiry(self, verifier: TokenVerifier) -> None:
        token = _sign({"id": "cust_1", "role": "customer"})

        with pytest.raises(Unauthorized):
            verifier.verify(token)
