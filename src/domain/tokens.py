"""
Token State Machine - Credential states driven by single-use tokens.

States
======

- UNVERIFIED:    registered, waiting for the confirmation token
- ACTIVE:        confirmed, no token in flight
- RESET_PENDING: confirmed, a reset-password token is in flight
- RECOVERING:    reset token validated inside the recovery transaction

Valid Transitions:
    UNVERIFIED    -> UNVERIFIED     (issue confirmation, overwrites previous)
    UNVERIFIED    -> ACTIVE         (confirm)
    ACTIVE        -> RESET_PENDING  (issue reset)
    RESET_PENDING -> RESET_PENDING  (issue reset, overwrites previous)
    RESET_PENDING -> RECOVERING     (begin recovery)
    RECOVERING    -> ACTIVE         (complete recovery)

Anything else raises Forbidden. RECOVERING is never persisted: it only
exists between validating a reset token and writing the new password,
both inside one transaction.

Expiry: a token is honored while now <= token_expire, so a token whose
expiry equals the current second is still valid. Expired tokens are left
in place; the caller must restart the flow.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum

from .exceptions import Expired, Forbidden, NotFound
from .hashing import derive_token
from .ports import Credential, TokenType


class CredentialState(str, Enum):
    UNVERIFIED = "unverified"
    ACTIVE = "active"
    RESET_PENDING = "reset_pending"
    RECOVERING = "recovering"


class TokenEvent(str, Enum):
    ISSUE_CONFIRMATION = "issue_confirmation"
    CONFIRM = "confirm"
    ISSUE_RESET = "issue_reset"
    BEGIN_RECOVERY = "begin_recovery"
    COMPLETE_RECOVERY = "complete_recovery"


TRANSITIONS: dict[tuple[CredentialState, TokenEvent], CredentialState] = {
    (CredentialState.UNVERIFIED, TokenEvent.ISSUE_CONFIRMATION): CredentialState.UNVERIFIED,
    (CredentialState.UNVERIFIED, TokenEvent.CONFIRM): CredentialState.ACTIVE,
    (CredentialState.ACTIVE, TokenEvent.ISSUE_RESET): CredentialState.RESET_PENDING,
    (CredentialState.RESET_PENDING, TokenEvent.ISSUE_RESET): CredentialState.RESET_PENDING,
    (CredentialState.RESET_PENDING, TokenEvent.BEGIN_RECOVERY): CredentialState.RECOVERING,
    (CredentialState.RECOVERING, TokenEvent.COMPLETE_RECOVERY): CredentialState.ACTIVE,
}

_ISSUE_EVENTS = {
    TokenType.CONFIRMATION: TokenEvent.ISSUE_CONFIRMATION,
    TokenType.RESET_PASSWORD: TokenEvent.ISSUE_RESET,
}


def state_of(credential: Credential) -> CredentialState:
    """Derive the persisted state of a credential from its fields."""
    if not credential.active:
        return CredentialState.UNVERIFIED
    if credential.token and credential.token_type == TokenType.RESET_PASSWORD:
        return CredentialState.RESET_PENDING
    return CredentialState.ACTIVE


def transition(state: CredentialState, event: TokenEvent) -> CredentialState:
    """
    Apply an event to a state.

    Raises:
        Forbidden: the event is not legal from this state
    """
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise Forbidden(f"Cannot {event.value.replace('_', ' ')} from state {state.value}") from None


@dataclass
class TokenStateMachine:
    """
    Issues, validates and consumes credential tokens.

    The clock returns epoch seconds and is injectable for tests.
    """

    ttl_seconds: int = 60 * 60 * 48
    clock: Callable[[], float] = field(default=time.time)

    def now(self) -> int:
        return int(self.clock())

    def issue(self, credential: Credential, token_type: TokenType) -> Credential:
        """
        Return the credential carrying a fresh token of the given type.

        Any previous token is overwritten, so at most one token is live.

        Raises:
            Forbidden: the credential's state does not allow this token
        """
        if token_type not in _ISSUE_EVENTS:
            raise Forbidden(f"Cannot issue token of type {token_type.value}")
        transition(state_of(credential), _ISSUE_EVENTS[token_type])

        now = self.now()
        return replace(
            credential,
            token=derive_token(credential.email, now),
            token_type=token_type,
            token_expire=now + self.ttl_seconds,
        )

    def validate(self, credential: Credential, token_type: TokenType) -> None:
        """
        Check the credential carries a live token of the expected type.

        Raises:
            NotFound: no token, or a token issued for another purpose
            Expired: the token is past its expiry; it is not cleared
        """
        if not credential.token or credential.token_type != token_type:
            raise NotFound("Token not found")
        if self.now() > credential.token_expire:
            raise Expired("Token expired, restart the flow")

    def consume(self, credential: Credential) -> Credential:
        """Return the credential with its token fields cleared."""
        return replace(credential, token=None, token_type=TokenType.NONE, token_expire=0)
