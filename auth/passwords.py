"""
auth/passwords.py -- bcrypt password hashing and verification.

bcrypt is used directly rather than through passlib[bcrypt]: passlib's
wrap-bug detection builds a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Work factor comes from Settings.bcrypt_rounds (12 in production). Each hash
embeds its own salt and cost, so verify_password() needs no configuration and
hashes made under an older cost keep verifying after the setting changes.

Both operations are deliberately slow. Async callers must use the *_async
variants, which run bcrypt in the Starlette thread pool so one login does not
stall every other request on the event loop.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

import bcrypt
from starlette.concurrency import run_in_threadpool

from auth.errors import AccountValidationError
from core.config import get_settings

logger = logging.getLogger("arondight.auth")

# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    rounds defaults to Settings.bcrypt_rounds. Raises AccountValidationError
    for an empty password or one longer than 72 bytes (bcrypt would otherwise
    truncate it silently). The API layer enforces the same limits first.
    """
    if not plain:
        raise AccountValidationError("Password cannot be empty.")
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise AccountValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Fails closed: an empty, truncated or otherwise malformed stored hash is a
    non-match, never an exception.
    """
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed; treating as non-match")
        return False


def is_password_hash(value: str) -> bool:
    """Return True if value looks like a bcrypt hash ($2a$/$2b$/$2y$, 60 chars)."""
    return len(value) == 60 and value[:4] in ("$2a$", "$2b$", "$2y$")


async def hash_password_async(plain: str, rounds: int | None = None) -> str:
    return await run_in_threadpool(hash_password, plain, rounds)


async def verify_password_async(plain: str, hashed: str) -> bool:
    return await run_in_threadpool(verify_password, plain, hashed)
