"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts, carts and orders.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account / _row_to_cart / _row_to_order are the mappers. Service and
route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced in SQL. The service layer still checks for an
  existing email before hashing (cheap early rejection), but two concurrent
  registrations can both pass that read. The constraint makes the second
  insert fail, and the store turns that IntegrityError into
  DuplicateEmailError, so at most one account per email can ever exist.

  The store refuses to write an account whose password_hash is not a bcrypt
  hash. A caller that forgot to hash gets AccountValidationError instead of a
  plaintext row.

Transactions:
  create_account() inserts the cart and the account inside one
  engine.begin() block. If the account insert fails (duplicate email, store
  error) the cart insert rolls back with it -- no orphaned carts.

  delete_by_id() removes only the account row. The cart and past orders are
  left in place; they are referenced by id and owned by other subsystems.

Errors:
  Every SQLAlchemyError is re-raised as StoreError (chained) so callers only
  ever see the auth error taxonomy.

DB path: auth/arondight_accounts.db unless DATABASE_URL says otherwise.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, Index, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import (
    AccountValidationError,
    DuplicateEmailError,
    StoreError,
    account_not_found_by_id,
)
from auth.models import Account, Cart, Order
from auth.passwords import is_password_hash
from core.config import DEFAULT_DATABASE_URL

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(60), nullable=False),
    Column("cart_id", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_carts = Table(
    "carts",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("items", Text, nullable=False, server_default="[]"),  # JSON array
    Column("created_at", String(32), nullable=False),
)

_orders = Table(
    "orders",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("account_id", String(32), nullable=False),
    Column("items", Text, nullable=False, server_default="[]"),  # JSON array
    Column("created_at", String(32), nullable=False),
    Index("ix_orders_account_id", "account_id"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def _store_errors(email_conflict: bool = False) -> Iterator[None]:
    """Translate SQLAlchemy failures into the auth error taxonomy.

    email_conflict=True marks blocks where the only reachable IntegrityError
    is the UNIQUE(email) constraint (ids are fresh UUIDs).
    """
    try:
        yield
    except IntegrityError as exc:
        if email_conflict:
            raise DuplicateEmailError() from exc
        raise StoreError() from exc
    except SQLAlchemyError as exc:
        raise StoreError() from exc


def _require_hash(account: Account) -> None:
    if not is_password_hash(account.password_hash or ""):
        raise AccountValidationError("password_hash must be a bcrypt hash.")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account, Cart and Order records.

    Usage:
        store = AccountStore()
        account = store.create_account(Account(name="Ada", email="ada@x.com", password_hash=hash_password("pw")))
        found = store.find_by_email("ada@x.com")
        full = store.find_by_id(account.id, expand=True)
        store.close()

    Methods are synchronous. Async callers go through the thread pool
    (see auth/service.py).
    """

    def __init__(self, db_url: str = DEFAULT_DATABASE_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Account queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email. Returns None if not found."""
        with _store_errors(), self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_by_id(self, account_id: str, expand: bool = False) -> Account | None:
        """Look up an account by id. Returns None if not found.

        expand=True also loads the linked Cart and the account's Orders
        (oldest first) in the same connection.
        """
        with _store_errors(), self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
            if row is None:
                return None
            account = _row_to_account(row)
            if expand:
                cart_row = conn.execute(_carts.select().where(_carts.c.id == account.cart_id)).fetchone()
                account.cart = _row_to_cart(cart_row) if cart_row is not None else None
                order_rows = conn.execute(
                    _orders.select()
                    .where(_orders.c.account_id == account.id)
                    .order_by(_orders.c.created_at, _orders.c.id)
                ).fetchall()
                account.orders = [_row_to_order(r) for r in order_rows]
        return account

    def create_account(self, account: Account) -> Account:
        """Insert a new account together with its empty cart; return the stored account.

        The account id is generated before the cart is linked, and both rows
        are written in one transaction. Raises DuplicateEmailError if the
        email is already taken (including a concurrent registration that won
        the race), AccountValidationError if password_hash is not a bcrypt hash.
        """
        _require_hash(account)
        account_id = _new_id()
        cart_id = _new_id()
        created_at = _now_iso()
        with _store_errors(email_conflict=True), self.engine.begin() as conn:
            conn.execute(_carts.insert().values(id=cart_id, items="[]", created_at=created_at))
            conn.execute(
                _accounts.insert().values(
                    id=account_id,
                    name=account.name,
                    email=account.email,
                    password_hash=account.password_hash,
                    cart_id=cart_id,
                    created_at=created_at,
                )
            )
        return Account(
            id=account_id,
            name=account.name,
            email=account.email,
            password_hash=account.password_hash,
            cart_id=cart_id,
            created_at=created_at,
            cart=Cart(id=cart_id, created_at=created_at),
        )

    def save(self, account: Account) -> None:
        """Write name, email and password_hash back to the account row.

        Full-document update: every mutable field is written whether it
        changed or not. Raises AccountNotFoundError if the id does not exist,
        DuplicateEmailError if the new email belongs to another account.
        """
        _require_hash(account)
        with _store_errors(email_conflict=True), self.engine.begin() as conn:
            result = conn.execute(
                _accounts.update()
                .where(_accounts.c.id == account.id)
                .values(name=account.name, email=account.email, password_hash=account.password_hash)
            )
        if result.rowcount == 0:
            raise account_not_found_by_id()

    def delete_by_id(self, account_id: str) -> bool:
        """Permanently delete an account. Returns True if deleted, False if not found.

        Hard delete, no tombstone. The linked cart and orders are not removed.
        """
        with _store_errors(), self.engine.begin() as conn:
            result = conn.execute(_accounts.delete().where(_accounts.c.id == account_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def add_order(self, account_id: str, items: list[dict]) -> Order:
        """Append an order to an account's history and return it.

        Entry point for order activity elsewhere in the application. Raises
        AccountNotFoundError if the account does not exist.
        """
        order = Order(id=_new_id(), account_id=account_id, items=list(items), created_at=_now_iso())
        with _store_errors(), self.engine.begin() as conn:
            exists = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
            if exists is None:
                raise account_not_found_by_id()
            conn.execute(
                _orders.insert().values(
                    id=order.id,
                    account_id=account_id,
                    items=json.dumps(order.items),
                    created_at=order.created_at,
                )
            )
        return order

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        cart_id=row.cart_id,
        created_at=row.created_at,
    )


def _row_to_cart(row) -> Cart:
    return Cart(id=row.id, items=json.loads(row.items or "[]"), created_at=row.created_at)


def _row_to_order(row) -> Order:
    return Order(
        id=row.id,
        account_id=row.account_id,
        items=json.loads(row.items or "[]"),
        created_at=row.created_at,
    )
