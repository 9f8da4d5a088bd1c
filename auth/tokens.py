"""
auth/tokens.py -- Signed session tokens (JWT via python-jose, HS256).

Security design decisions:
  Stateless: a token is self-contained. No server-side session table tracks
       issued tokens, so a token cannot be revoked before it expires. Logout
       is the client discarding its token. This is a property of the design,
       not an oversight -- there is nothing to look up on each request.

  Secret injection: TokenIssuer receives the signing secret at construction
       (from core.config.Settings in the app lifespan). An empty secret is a
       ValueError at construction, so a misconfigured process dies at startup
       instead of minting tokens nobody can verify.

  Opaque failures: verify() raises UnauthorizedError for every failure mode
       (bad signature, expired, malformed, missing id). The cause is logged at
       DEBUG; the caller only learns "unauthorized".

Claim shapes:
  login / register   -> {name, email, id}
  profile update     -> {name, email, id, orders, cart}
Registered claims iat and exp are added on issue and stripped on verify, so
verify(issue(c)) == c for any claim set c.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import UnauthorizedError
from auth.models import Account

logger = logging.getLogger("arondight.auth")

_ALGORITHM = "HS256"
_REGISTERED_CLAIMS = ("iat", "exp")
_DEFAULT_EXPIRE_SECONDS = 60 * 60 * 24


class TokenIssuer:
    """Issue and verify session tokens with one process-wide secret.

    Usage:
        issuer = TokenIssuer(settings.secret_key, settings.token_expire_seconds)
        token = issuer.issue(issuer.claims_for(account))
        claims = issuer.verify(token)   # raises UnauthorizedError on failure

    Instances are immutable after construction and safe to share across
    concurrent requests.
    """

    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = _DEFAULT_EXPIRE_SECONDS,
        algorithm: str = _ALGORITHM,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a non-empty signing secret.")
        if expire_seconds <= 0:
            raise ValueError("expire_seconds must be positive.")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.expire_seconds = expire_seconds

    def issue(self, claims: dict, expire_seconds: int | None = None) -> str:
        """Sign claims into a token valid for expire_seconds (default: the issuer's TTL).

        The caller's dict is copied, never mutated. A non-positive
        expire_seconds yields an already-expired token (used by tests).
        """
        duration = self.expire_seconds if expire_seconds is None else expire_seconds
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload["iat"] = now
        payload["exp"] = now + timedelta(seconds=duration)
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> dict:
        """Check signature and expiry and return the claims without iat/exp.

        Raises UnauthorizedError on any failure. A token without an id claim
        is rejected too: every token this issuer mints carries one.
        """
        if not token:
            raise UnauthorizedError()
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise UnauthorizedError() from exc
        if not payload.get("id"):
            logger.debug("Token rejected: missing id claim")
            raise UnauthorizedError()
        return {k: v for k, v in payload.items() if k not in _REGISTERED_CLAIMS}

    @staticmethod
    def claims_for(account: Account, include_relations: bool = False) -> dict:
        """Build the claim set for an account.

        include_relations=True adds the profile-update claims: orders (order
        ids, oldest first) and cart (cart id). Expects the account to have
        been loaded with expand=True in that case.
        """
        claims = {
            "name": account.name,
            "email": account.email,
            "id": account.id,
        }
        if include_relations:
            claims["orders"] = [o.id for o in account.orders]
            claims["cart"] = account.cart_id
        return claims
