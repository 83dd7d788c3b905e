"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the domain records exchanged with infrastructure and
the interfaces (ports) the domain requires from it. Adapters implement
these protocols through structural subtyping.
"""

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class TokenType(str, Enum):
    """Purpose of the token currently stored on a credential."""

    NONE = "none"
    CONFIRMATION = "confirmation"
    RESET_PASSWORD = "reset_password"


class EmailSubject(str, Enum):
    """Kind of outbound lifecycle email."""

    REGISTRATION = "registration"
    RESET_PASSWORD = "reset_password"


@dataclass(frozen=True)
class User:
    """Minimal user profile created together with the first credential."""

    name: str
    created_at: int
    user_id: int | None = None


@dataclass(frozen=True)
class Credential:
    """
    Authentication record for one identity.

    token_expire is an absolute epoch timestamp in seconds; 0 when no
    token is stored.
    """

    email: str
    password_hash: str
    salt: str
    user_id: int | None = None
    token: str | None = None
    token_type: TokenType = TokenType.NONE
    token_expire: int = 0
    active: bool = False


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str


@dataclass(frozen=True)
class EmailData:
    """Payload handed to the email collaborator."""

    subject: EmailSubject
    recipient: Recipient
    token: str


@dataclass(frozen=True)
class CookieDescriptor:
    """Browser cookie the transport should set."""

    name: str
    value: str
    expires_at: datetime
    path: str = "/"


@dataclass(frozen=True)
class SessionGrant:
    """Signed session token returned by a successful login."""

    token_id: str
    access_token: str
    issued_at: datetime
    expires_at: datetime
    cookie: CookieDescriptor


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a session token."""

    token_id: str
    user_id: int
    issued_at: datetime
    expires_at: datetime


class CredentialStore(Protocol):
    """
    Port interface for credential persistence.

    Every method takes an optional transaction handle obtained from
    transaction(). Without one, the call runs as its own atomic unit.
    """

    def transaction(self, timeout: float | None = None) -> AbstractContextManager[Any]:
        """
        Open a Serializable transaction scope.

        Commits when the block exits normally and rolls back on every
        other exit path.

        Raises:
            TransactionAborted: serialization failure or deadline exceeded
            Fatal: any other database failure
        """
        ...

    def find_by_email(self, email: str, tx: Any = None, timeout: float | None = None) -> Credential:
        """Raises NotFound when no credential has this email."""
        ...

    def find_by_token(self, token: str, tx: Any = None, timeout: float | None = None) -> Credential:
        """Raises NotFound when no credential carries this token."""
        ...

    def find_user(self, user_id: int, tx: Any = None, timeout: float | None = None) -> User:
        """Raises NotFound when the user does not exist."""
        ...

    def create(self, tx: Any, user: User, credential: Credential) -> int:
        """
        Insert a user and its credential.

        Returns:
            The new user_id

        Raises:
            Conflict: email already registered
        """
        ...

    def update(self, tx: Any, credential: Credential) -> None:
        """Replace the mutable token, password and activation fields."""
        ...

    def consume_token(self, tx: Any, user_id: int, token: str, token_type: TokenType) -> None:
        """
        Clear the token fields of a credential.

        Raises:
            NotFound: the token was already consumed or replaced
        """
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send(self, email: EmailData) -> None:
        """Deliver a lifecycle email. May raise on transport failure."""
        ...


class EmailDispatcher(Protocol):
    """Port interface for detached, best-effort email jobs."""

    def dispatch(self, email: EmailData) -> Any:
        """Schedule delivery without waiting for it."""
        ...


class SessionIssuer(Protocol):
    """Port interface for stateless session tokens."""

    def issue(self, user_id: int, remember_me: bool = False) -> SessionGrant:
        ...

    def verify(self, token: str) -> SessionClaims:
        ...

    def clear_cookie(self) -> CookieDescriptor:
        ...
