"""Unit tests for auth/tokens.py -- TokenIssuer issue/verify.

Covers:
- verify(issue(c)) == c for the login and profile claim shapes
- default lifetime is exactly one day
- expired, wrongly-signed, tampered, malformed and id-less tokens are all
  rejected with the same UnauthorizedError
- construction fails fast without a secret
"""

from __future__ import annotations

import pytest
from jose import jwt

from auth.errors import UnauthorizedError
from auth.models import Account, Order
from auth.tokens import TokenIssuer

SECRET = "unit-test-secret-key-with-at-least-32-chars"
OTHER_SECRET = "another-secret-key-also-at-least-32-chars!!"


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(SECRET)


def _account() -> Account:
    return Account(
        id="a" * 32,
        name="Ada",
        email="ada@x.com",
        password_hash="$2b$04$" + "x" * 53,
        cart_id="c" * 32,
        orders=[Order(id="o1", account_id="a" * 32), Order(id="o2", account_id="a" * 32)],
    )


class TestRoundTrip:
    def test_claims_survive_round_trip(self, token_issuer: TokenIssuer) -> None:
        claims = {"name": "Ada", "email": "ada@x.com", "id": "abc123"}
        assert token_issuer.verify(token_issuer.issue(claims)) == claims

    def test_profile_claims_survive_round_trip(self, token_issuer: TokenIssuer) -> None:
        claims = token_issuer.claims_for(_account(), include_relations=True)
        assert token_issuer.verify(token_issuer.issue(claims)) == claims

    def test_issue_does_not_mutate_input(self, token_issuer: TokenIssuer) -> None:
        claims = {"name": "Ada", "email": "ada@x.com", "id": "abc123"}
        token_issuer.issue(claims)
        assert claims == {"name": "Ada", "email": "ada@x.com", "id": "abc123"}

    def test_default_lifetime_is_one_day(self, token_issuer: TokenIssuer) -> None:
        token = token_issuer.issue({"id": "abc123"})
        raw = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert raw["exp"] - raw["iat"] == 86400

    def test_registered_claims_are_stripped(self, token_issuer: TokenIssuer) -> None:
        claims = token_issuer.verify(token_issuer.issue({"id": "abc123"}))
        assert "exp" not in claims
        assert "iat" not in claims


class TestRejection:
    def test_expired_token_rejected(self, token_issuer: TokenIssuer) -> None:
        token = token_issuer.issue({"id": "abc123"}, expire_seconds=-10)
        with pytest.raises(UnauthorizedError):
            token_issuer.verify(token)

    def test_wrong_secret_rejected(self, token_issuer: TokenIssuer) -> None:
        token = TokenIssuer(OTHER_SECRET).issue({"id": "abc123"})
        with pytest.raises(UnauthorizedError):
            token_issuer.verify(token)

    def test_tampered_payload_rejected(self, token_issuer: TokenIssuer) -> None:
        header, payload, signature = token_issuer.issue({"id": "abc123"}).split(".")
        forged_payload = TokenIssuer(OTHER_SECRET).issue({"id": "admin"}).split(".")[1]
        with pytest.raises(UnauthorizedError):
            token_issuer.verify(".".join([header, forged_payload, signature]))

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "Bearer"])
    def test_malformed_token_rejected(self, token_issuer: TokenIssuer, token: str) -> None:
        with pytest.raises(UnauthorizedError):
            token_issuer.verify(token)

    def test_token_without_id_rejected(self, token_issuer: TokenIssuer) -> None:
        token = token_issuer.issue({"name": "Ada", "email": "ada@x.com"})
        with pytest.raises(UnauthorizedError):
            token_issuer.verify(token)

    def test_all_failures_share_one_message(self, token_issuer: TokenIssuer) -> None:
        """Callers cannot tell an expired token from a forged one."""
        messages = set()
        for token in (
            token_issuer.issue({"id": "abc123"}, expire_seconds=-10),
            TokenIssuer(OTHER_SECRET).issue({"id": "abc123"}),
            "garbage",
        ):
            with pytest.raises(UnauthorizedError) as excinfo:
                token_issuer.verify(token)
            messages.add(excinfo.value.message)
        assert messages == {"Authentication required."}


class TestClaimsFor:
    def test_login_shape(self) -> None:
        assert TokenIssuer.claims_for(_account()) == {
            "name": "Ada",
            "email": "ada@x.com",
            "id": "a" * 32,
        }

    def test_profile_shape_includes_orders_and_cart(self) -> None:
        claims = TokenIssuer.claims_for(_account(), include_relations=True)
        assert claims["orders"] == ["o1", "o2"]
        assert claims["cart"] == "c" * 32

    def test_claims_never_include_password_hash(self) -> None:
        claims = TokenIssuer.claims_for(_account(), include_relations=True)
        assert all("$2b$" not in str(v) for v in claims.values())


class TestConstruction:
    def test_empty_secret_fails_fast(self) -> None:
        with pytest.raises(ValueError):
            TokenIssuer("")

    def test_non_positive_lifetime_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenIssuer(SECRET, expire_seconds=0)
