"""
auth/models.py -- Domain dataclasses for accounts and session identity.

Pattern: Data class (pure data container, zero logic). Stores and the service
layer do the work; these classes only own the domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Cart:
    """The single shopping cart owned by an account.

    Created empty in the same transaction as its account. Cart contents are
    managed outside the identity subsystem; items is an opaque list.
    """

    id: str
    items: list[dict] = field(default_factory=list)
    created_at: str = ""


@dataclass
class Order:
    """A past order placed by an account. Orders are appended, never removed."""

    id: str
    account_id: str
    items: list[dict] = field(default_factory=list)
    created_at: str = ""


@dataclass
class Account:
    """One registered user.

    id is None until the store assigns it on creation; it never changes after.

    password_hash always holds a bcrypt hash. The store refuses to write an
    account whose password_hash is not one, so a plaintext can never reach
    the database by accident.

    cart_id is set by the store when the account and its cart are created
    together. cart and orders are only populated when the account is loaded
    with AccountStore.find_by_id(..., expand=True); otherwise cart is None and
    orders is empty.
    """

    name: str
    email: str
    password_hash: str
    id: str | None = None
    cart_id: str | None = None
    created_at: str = ""
    cart: Cart | None = None
    orders: list[Order] = field(default_factory=list)


@dataclass(frozen=True)
class Identity:
    """The verified identity the auth gate attaches to a request.

    Built only from a token that passed signature and expiry checks. claims
    holds the full decoded payload (minus iat/exp) for handlers that need the
    optional profile claims (orders, cart).
    """

    id: str
    name: str
    email: str
    claims: dict = field(default_factory=dict)
