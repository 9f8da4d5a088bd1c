"""
API request and response models for the Arondight account endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

No response model ever carries password_hash.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Account, Cart, Order

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@" with something on either side. Deliverability
# is not this service's concern.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

# bcrypt reads at most 72 bytes; longer input would be truncated silently.
PASSWORD_MAX_LENGTH = 72


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /users/register."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class LoginRequest(BaseModel):
    """Request body for POST /users/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class AccountUpdate(BaseModel):
    """Request body for PUT /users/{id}. Every field is optional; omitted fields are left alone."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(default=None, max_length=PASSWORD_MAX_LENGTH)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Response for register, login and update: the session token only."""

    model_config = ConfigDict(frozen=True)

    token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    msg: str


class CartResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    items: list[dict] = Field(default_factory=list)
    created_at: str

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartResponse":
        return cls(id=cart.id, items=cart.items, created_at=cart.created_at)


class OrderResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    items: list[dict] = Field(default_factory=list)
    created_at: str

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(id=order.id, items=order.items, created_at=order.created_at)


class AccountResponse(BaseModel):
    """Response for GET /users/{id}: the account with cart and orders expanded.

    cart is None only if the linked cart row has gone missing.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    created_at: str
    cart: Optional[CartResponse] = None
    orders: list[OrderResponse] = Field(default_factory=list)

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        """Build an AccountResponse from an expanded domain Account.

        Factory Method: the mapping lives here, next to the output model,
        and is the single place that decides which fields leave the service.
        """
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            created_at=account.created_at,
            cart=CartResponse.from_cart(account.cart) if account.cart is not None else None,
            orders=[OrderResponse.from_order(o) for o in account.orders],
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
