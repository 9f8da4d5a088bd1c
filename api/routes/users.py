"""
api/routes/users.py -- Account registration, login and profile REST endpoints.

Routes:
  POST   /users/register     -- create account + cart; returns {token}
  POST   /users/login        -- verify credentials; returns {token}
  GET    /users/auth-locked  -- auth-gated probe (requires token)
  GET    /users/{id}         -- account with cart and orders expanded
  PUT    /users/{id}         -- update name/email/password; returns fresh {token} (201)
  DELETE /users/{id}         -- hard delete; returns {msg}

Errors:
  Handlers raise the auth error taxonomy (auth/errors.py) and let
  api/main.py render it. Every path ends in a response -- unexpected failures
  on GET/DELETE become a generic 500, never a dropped request.

Route order matters: /auth-locked is registered before /{id} so the literal
path is not captured as an id.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import AccountResponse, AccountUpdate, LoginRequest, MessageResponse, RegisterRequest, TokenResponse
from auth import service
from auth.dependencies import require_identity
from auth.errors import StoreError
from auth.models import Identity
from auth.store import AccountStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("arondight.api")

# Auth policy:
# - POST   /users/register:     public -- creates the credentials
# - POST   /users/login:        public -- exchanges credentials for a token
# - GET    /users/auth-locked:  requires token (require_identity)
# - GET    /users/{id}:         public
# - PUT    /users/{id}:         public
# - DELETE /users/{id}:         public
router = APIRouter(prefix="/users")


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@router.post("/register", response_model=TokenResponse)
async def register(request: Request, body: RegisterRequest) -> TokenResponse:
    """Register a new account and sign it in.

    400 if the email is taken or a field fails validation.
    """
    store: AccountStore = request.app.state.account_store
    issuer: TokenIssuer = request.app.state.token_issuer
    token = await service.register(store, issuer, body.name, body.email, body.password)
    return TokenResponse(token=token)


@router.post("/login", response_model=TokenResponse)
async def login(request: Request, body: LoginRequest) -> TokenResponse:
    """Exchange email + password for a session token.

    400 with distinct messages for an unknown email and a wrong password.
    """
    store: AccountStore = request.app.state.account_store
    issuer: TokenIssuer = request.app.state.token_issuer
    token = await service.login(store, issuer, body.email, body.password)
    return TokenResponse(token=token)


@router.get("/auth-locked", response_model=MessageResponse)
async def auth_locked(identity: Identity = Depends(require_identity)) -> MessageResponse:
    """Only reachable with a valid token."""
    logger.info("auth-locked route accessed by account %s", identity.id)
    return MessageResponse(msg="welcome to the secret auth-locked route")


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(request: Request, account_id: str) -> AccountResponse:
    store: AccountStore = request.app.state.account_store
    account = await service.get_account(store, account_id)
    return AccountResponse.from_account(account)


@router.put("/{account_id}", response_model=TokenResponse, status_code=201)
async def update_account(request: Request, account_id: str, body: AccountUpdate) -> TokenResponse:
    """Update any of name, email, password and return a token reflecting the new profile."""
    store: AccountStore = request.app.state.account_store
    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        token = await service.update_account(
            store,
            issuer,
            account_id,
            name=body.name,
            email=body.email,
            password=body.password,
        )
    except StoreError as exc:
        raise StoreError("Something went wrong with updating your account details") from exc
    return TokenResponse(token=token)


@router.delete("/{account_id}", response_model=MessageResponse)
async def delete_account(request: Request, account_id: str) -> MessageResponse:
    store: AccountStore = request.app.state.account_store
    await service.delete_account(store, account_id)
    return MessageResponse(msg="User deleted")
