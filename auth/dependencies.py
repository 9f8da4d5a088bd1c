"""
auth/dependencies.py -- FastAPI Depends() helpers for the auth gate.

The token travels in the Authorization header, either as
"Bearer <token>" or as the bare token (the storefront client sends it bare).

try_get_identity() is the soft variant (returns None on failure).
require_identity() wraps it and raises UnauthorizedError (HTTP 401) before
the protected handler runs.

On success the verified Identity is also stored on request.state.identity so
middleware and handlers further down the chain can read it without
re-verifying the token.

Verification is stateless: the TokenIssuer on app.state checks signature and
expiry only. There is no store lookup, so a deleted account's token keeps
passing the gate until it expires.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import UnauthorizedError
from auth.models import Identity
from auth.tokens import TokenIssuer


def _extract_token(request: Request) -> str:
    header = request.headers.get("Authorization", "").strip()
    if header[:7].lower() == "bearer ":
        return header[7:].strip()
    return header


def try_get_identity(request: Request) -> Identity | None:
    """Verify the request's token and return its Identity, or None on any failure.

    Never raises -- callers that need a hard 401 should use require_identity().
    """
    token = _extract_token(request)
    if not token:
        return None
    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        claims = issuer.verify(token)
    except UnauthorizedError:
        return None
    identity = Identity(
        id=str(claims["id"]),
        name=claims.get("name", ""),
        email=claims.get("email", ""),
        claims=claims,
    )
    request.state.identity = identity
    return identity


def require_identity(request: Request) -> Identity:
    """Require a valid token. Raises UnauthorizedError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: Identity = Depends(require_identity)): ...
    """
    identity = try_get_identity(request)
    if identity is None:
        raise UnauthorizedError()
    return identity
