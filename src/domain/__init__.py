"""
Domain layer - Pure business logic with zero framework imports.

This package contains the credential lifecycle: hashing primitive, token
state machine and the controller orchestrating register, confirm, reset,
recover and login. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    Conflict,
    ErrorKind,
    Expired,
    Fatal,
    Forbidden,
    InvalidCredentials,
    LifecycleError,
    NotFound,
    TransactionAborted,
    ValidationError,
)
from .lifecycle import LifecycleController
from .ports import (
    CookieDescriptor,
    Credential,
    CredentialStore,
    EmailData,
    EmailDispatcher,
    EmailSender,
    EmailSubject,
    Recipient,
    SessionClaims,
    SessionGrant,
    SessionIssuer,
    TokenType,
    User,
)
from .tokens import CredentialState, TokenEvent, TokenStateMachine

__all__ = [
    "Conflict",
    "CookieDescriptor",
    "Credential",
    "CredentialState",
    "CredentialStore",
    "EmailData",
    "EmailDispatcher",
    "EmailSender",
    "EmailSubject",
    "ErrorKind",
    "Expired",
    "Fatal",
    "Forbidden",
    "InvalidCredentials",
    "LifecycleController",
    "LifecycleError",
    "NotFound",
    "Recipient",
    "SessionClaims",
    "SessionGrant",
    "SessionIssuer",
    "TokenEvent",
    "TokenStateMachine",
    "TokenType",
    "TransactionAborted",
    "User",
    "ValidationError",
]
