"""
auth/service.py -- Account flows: register, login, read, update, delete.

Each flow is an async function taking its collaborators explicitly (the
AccountStore and the TokenIssuer), so routes stay thin and tests can drive
the flows without HTTP.

Blocking work -- bcrypt and every store call -- runs in the Starlette thread
pool. A flow suspends at those points and other in-flight requests keep
running on the event loop. Token signing is pure CPU in microseconds and runs
inline.

Flows raise members of the auth error taxonomy (auth/errors.py). They never
build HTTP responses; api/main.py maps exceptions to status codes.

Plaintext passwords are hashed before any store write and are never logged.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from auth.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    account_not_found_by_email,
    account_not_found_by_id,
)
from auth.models import Account
from auth.passwords import hash_password_async, verify_password_async
from auth.store import AccountStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("arondight.auth")


async def register(store: AccountStore, issuer: TokenIssuer, name: str, email: str, password: str) -> str:
    """Create an account with an empty cart and return a session token.

    Steps: reject a known email before doing any work, hash the password,
    create account + cart atomically, sign {name, email, id}.

    The early email check is a fast path only. A concurrent registration for
    the same email that slips past it is stopped by the store's UNIQUE
    constraint, which also raises DuplicateEmailError.
    """
    if await run_in_threadpool(store.find_by_email, email) is not None:
        raise DuplicateEmailError()

    password_hash = await hash_password_async(password)
    account = await run_in_threadpool(
        store.create_account,
        Account(name=name, email=email, password_hash=password_hash),
    )
    logger.info("Registered account %s", account.id)
    return issuer.issue(issuer.claims_for(account))


async def login(store: AccountStore, issuer: TokenIssuer, email: str, password: str) -> str:
    """Verify email + password and return a session token.

    Unknown email and wrong password are distinct errors (both 400). No
    lockout or throttling after repeated failures.
    """
    account = await run_in_threadpool(store.find_by_email, email)
    if account is None:
        raise account_not_found_by_email()

    if not await verify_password_async(password, account.password_hash):
        logger.info("Failed login for account %s", account.id)
        raise InvalidCredentialsError()

    return issuer.issue(issuer.claims_for(account))


async def get_account(store: AccountStore, account_id: str) -> Account:
    """Return the account with its cart and orders expanded."""
    account = await run_in_threadpool(store.find_by_id, account_id, True)
    if account is None:
        raise account_not_found_by_id()
    return account


async def update_account(
    store: AccountStore,
    issuer: TokenIssuer,
    account_id: str,
    name: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> str:
    """Apply the provided profile fields and return a fresh token.

    Only fields that are given (and non-empty) change. A new password is
    hashed before the write and replaces the stored hash wholesale. The
    returned token carries the profile claim shape (orders and cart included).
    """
    account = await run_in_threadpool(store.find_by_id, account_id, True)
    if account is None:
        raise account_not_found_by_id()

    if name:
        account.name = name
    if email:
        account.email = email
    if password:
        account.password_hash = await hash_password_async(password)

    await run_in_threadpool(store.save, account)
    logger.info("Updated account %s", account.id)
    return issuer.issue(issuer.claims_for(account, include_relations=True))


async def delete_account(store: AccountStore, account_id: str) -> None:
    """Hard-delete the account. Cart and orders stay behind."""
    if not await run_in_threadpool(store.delete_by_id, account_id):
        raise account_not_found_by_id()
    logger.info("Deleted account %s", account_id)
