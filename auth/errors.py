"""
auth/errors.py -- Error taxonomy for account and session operations.

Each failure kind is its own exception type, raised where the failure is
detected. The API layer maps them to responses by type (see
api/main.py:auth_error_handler); nothing downstream inspects message text or
an error's name to decide what went wrong.

code and status_code are class attributes so a handler can render any
AuthError without knowing the concrete subclass. message is always safe to
show to the client; internal detail belongs in the log.

Layer rule: no imports from api/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every client-visible account/session failure."""

    code: str = "auth_error"
    status_code: int = 400
    default_message: str = "Request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateEmailError(AuthError):
    """An account with this email is already registered."""

    code = "duplicate_email"
    status_code = 400
    default_message = "email already exists"


class AccountNotFoundError(AuthError):
    """No account matches the given email or id.

    Login reports this as 400 with a message naming the email; id-addressed
    routes report it as 404. The route picks the status by raising
    account_not_found_by_email() or account_not_found_by_id().
    """

    code = "not_found"
    status_code = 404
    default_message = "User not found."


class InvalidCredentialsError(AuthError):
    """Password does not match the stored hash."""

    code = "bad_credentials"
    status_code = 400
    default_message = "password and email doesn't match"


class AccountValidationError(AuthError):
    """Input fields are malformed. message carries the validation detail."""

    code = "validation_error"
    status_code = 400
    default_message = "Request validation failed."


class UnauthorizedError(AuthError):
    """Missing, malformed, expired or wrongly-signed token.

    The message never says which -- callers only learn they are unauthorized.
    """

    code = "unauthorized"
    status_code = 401
    default_message = "Authentication required."


class StoreError(AuthError):
    """The backing store failed (connection lost, disk full, ...).

    Rendered as a generic 500. The original SQLAlchemy exception is chained
    via __cause__ and logged server-side only.
    """

    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred."


def account_not_found_by_email() -> AccountNotFoundError:
    """Login variant: client error (400) that names the missing email."""
    exc = AccountNotFoundError("No user exists with that email")
    exc.status_code = 400
    return exc


def account_not_found_by_id() -> AccountNotFoundError:
    return AccountNotFoundError()
