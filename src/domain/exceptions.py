"""
Domain exceptions - Semantic error types for the credential lifecycle.

This module defines a closed set of domain errors. Every error carries a
machine-readable ErrorKind plus a human message; transport adapters map
the kind to a protocol status code, the domain never does.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable classification of lifecycle failures."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    TRANSACTION_ABORTED = "transaction_aborted"
    FATAL = "fatal"


class LifecycleError(Exception):
    """Base class for credential lifecycle domain errors."""

    kind: ErrorKind = ErrorKind.FATAL
    default_message = "Credential lifecycle failure"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LifecycleError):
    """Malformed or missing input."""

    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class NotFound(LifecycleError):
    """Unknown email, user or token."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class InvalidCredentials(NotFound):
    """Unknown email or wrong password. Both cases carry the same message."""

    default_message = "Invalid email or password"

    def __init__(self) -> None:
        super().__init__()


class Expired(LifecycleError):
    """Token past its time-to-live."""

    kind = ErrorKind.EXPIRED
    default_message = "Token expired"


class Forbidden(LifecycleError):
    """Inactive account or illegal state transition."""

    kind = ErrorKind.FORBIDDEN
    default_message = "Forbidden"


class Conflict(LifecycleError):
    """Email is already registered."""

    kind = ErrorKind.CONFLICT
    default_message = "Email already registered"


class TransactionAborted(LifecycleError):
    """Concurrent conflicting writer or deadline; the whole flow may be retried."""

    kind = ErrorKind.TRANSACTION_ABORTED
    default_message = "Transaction aborted, retry the request"


class Fatal(LifecycleError):
    """Unexpected persistence, randomness or signing failure."""

    kind = ErrorKind.FATAL
    default_message = "Internal error"
