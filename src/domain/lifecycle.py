"""
Credential Lifecycle Controller - Register, confirm, reset, recover, login.

This module orchestrates the hashing primitive, the token state machine,
the credential store and the session issuer. Every flow that writes runs
inside a single Serializable transaction opened through the store, so two
requests racing on the same token or email are linearized: exactly one
commits and the other fails with TransactionAborted, Conflict or NotFound.

Flows
=====

register              UNVERIFIED credential + confirmation token, email after commit
confirm_registration  consume confirmation token, UNVERIFIED -> ACTIVE
reset_password        ACTIVE -> RESET_PENDING, email after commit
recover_password      consume reset token, write new salt + hash, -> ACTIVE
login                 verify password, issue a signed session

Outbound email is handed to a dispatcher after commit and never awaited,
so delivery failures cannot roll back a credential mutation. This layer
performs no retries; callers may retry a flow that failed with
TransactionAborted from scratch.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from functools import lru_cache

from .exceptions import (
    Forbidden,
    InvalidCredentials,
    NotFound,
    TransactionAborted,
    ValidationError,
)
from .hashing import (
    BCRYPT_MAX_PASSWORD_BYTES,
    generate_salt,
    hash_password,
    verify_password,
)
from .ports import (
    CookieDescriptor,
    Credential,
    CredentialStore,
    EmailData,
    EmailDispatcher,
    EmailSubject,
    Recipient,
    SessionClaims,
    SessionGrant,
    SessionIssuer,
    TokenType,
    User,
)
from .tokens import TokenEvent, TokenStateMachine, state_of, transition

logger = logging.getLogger(__name__)


@lru_cache
def _dummy_credentials(rounds: int) -> tuple[str, str]:
    """
    Salt and hash compared against when a login email is unknown.

    Keeps bcrypt on the login path so response time does not reveal
    whether an account exists.
    """
    salt = generate_salt(rounds)
    return salt, hash_password("dummy_password_for_timing_safety", salt)


@dataclass
class LifecycleController:
    """
    Domain service for the credential lifecycle.

    Configuration is passed in explicitly at construction; the clock
    returns epoch seconds and is shared with the token state machine.
    """

    store: CredentialStore
    session_issuer: SessionIssuer
    email_dispatcher: EmailDispatcher
    token_ttl_seconds: int = 60 * 60 * 48
    bcrypt_cost: int = 10
    min_password_length: int = 6
    operation_timeout: float | None = 30.0
    clock: Callable[[], float] = field(default=time.time)
    monotonic: Callable[[], float] = field(default=time.monotonic)
    tokens: TokenStateMachine = field(init=False)

    def __post_init__(self) -> None:
        self.tokens = TokenStateMachine(ttl_seconds=self.token_ttl_seconds, clock=self.clock)

    def register(
        self,
        email: str,
        password: str,
        name: str,
        accepted_terms: bool,
        timeout: float | None = None,
    ) -> int:
        """
        Create an unconfirmed account and send the confirmation email.

        Args:
            email: User's email address (will be normalized)
            password: User's password (will be salted and hashed)
            name: Display name for the user profile
            accepted_terms: Must be True
            timeout: Seconds before the transaction is abandoned

        Returns:
            The new user_id

        Raises:
            ValidationError: terms not accepted or malformed input
            Conflict: email already registered
            TransactionAborted: concurrent conflicting registration
        """
        if not accepted_terms:
            raise ValidationError("Terms and conditions must be accepted")
        normalized_email = self._require_email(email)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        self._check_password(password)

        salt = generate_salt(self.bcrypt_cost)
        credential = Credential(
            email=normalized_email,
            password_hash=hash_password(password, salt),
            salt=salt,
        )
        credential = self.tokens.issue(credential, TokenType.CONFIRMATION)
        user = User(name=name, created_at=self.tokens.now())

        with self.store.transaction(self._timeout(timeout)) as tx:
            user_id = self.store.create(tx, user, credential)

        logger.info("Registered user_id=%s, confirmation pending", user_id)
        self._schedule_email(EmailSubject.REGISTRATION, normalized_email, name, credential.token)
        return user_id

    def confirm_registration(self, token: str, timeout: float | None = None) -> int:
        """
        Consume a confirmation token and activate the account.

        Once consumed, the same token yields NotFound.

        Returns:
            user_id of the activated account

        Raises:
            ValidationError: empty token
            NotFound: unknown or already consumed token
            Expired: token past its expiry (left in place)
        """
        token = self._require_token(token)

        with self.store.transaction(self._timeout(timeout)) as tx:
            credential = self.store.find_by_token(token, tx)
            self.tokens.validate(credential, TokenType.CONFIRMATION)
            transition(state_of(credential), TokenEvent.CONFIRM)
            self.store.consume_token(tx, credential.user_id, token, TokenType.CONFIRMATION)
            self.store.update(tx, replace(self.tokens.consume(credential), active=True))

        logger.info("Confirmed registration for user_id=%s", credential.user_id)
        return credential.user_id

    def reset_password(self, email: str, timeout: float | None = None) -> None:
        """
        Issue a reset-password token and send it by email.

        The lookups and the transaction share one deadline.

        Raises:
            ValidationError: empty email
            NotFound: no account with this email
            Forbidden: account not confirmed yet
            TransactionAborted: deadline exceeded
        """
        normalized_email = self._require_email(email)
        deadline = self._deadline(timeout)

        credential = self.store.find_by_email(normalized_email, timeout=self._remaining(deadline))
        user = self.store.find_user(credential.user_id, timeout=self._remaining(deadline))

        with self.store.transaction(self._remaining(deadline)) as tx:
            # Re-read under lock so the update cannot overwrite a concurrent recovery
            credential = self.store.find_by_email(normalized_email, tx)
            credential = self.tokens.issue(credential, TokenType.RESET_PASSWORD)
            self.store.update(tx, credential)

        logger.info("Issued reset-password token for user_id=%s", credential.user_id)
        self._schedule_email(EmailSubject.RESET_PASSWORD, credential.email, user.name, credential.token)

    def recover_password(
        self,
        token: str,
        password: str,
        confirm_password: str,
        timeout: float | None = None,
    ) -> None:
        """
        Consume a reset token and store the new password.

        Raises:
            ValidationError: passwords too short or not equal
            NotFound: unknown or already consumed token
            Expired: token past its expiry; the old password stays valid
        """
        token = self._require_token(token)
        password = password or ""
        confirm_password = confirm_password or ""
        if len(password) < self.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.min_password_length} characters"
            )
        if len(confirm_password) < self.min_password_length:
            raise ValidationError(
                f"Password confirmation must be at least {self.min_password_length} characters"
            )
        if password != confirm_password:
            raise ValidationError("Passwords are not equal")
        self._check_password(password)

        salt = generate_salt(self.bcrypt_cost)
        password_hash = hash_password(password, salt)

        with self.store.transaction(self._timeout(timeout)) as tx:
            credential = self.store.find_by_token(token, tx)
            self.tokens.validate(credential, TokenType.RESET_PASSWORD)
            state = transition(state_of(credential), TokenEvent.BEGIN_RECOVERY)
            self.store.consume_token(tx, credential.user_id, token, TokenType.RESET_PASSWORD)
            recovered = replace(
                self.tokens.consume(credential),
                password_hash=password_hash,
                salt=salt,
            )
            transition(state, TokenEvent.COMPLETE_RECOVERY)
            self.store.update(tx, recovered)

        logger.info("Recovered password for user_id=%s", credential.user_id)

    def login(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
        timeout: float | None = None,
    ) -> SessionGrant:
        """
        Authenticate and issue a signed session.

        Unknown email and wrong password raise the same InvalidCredentials;
        only the logs tell them apart.

        Raises:
            ValidationError: empty email or password
            InvalidCredentials: unknown email or wrong password
            Forbidden: account not confirmed yet
        """
        normalized_email = self._require_email(email)
        if not password:
            raise ValidationError("Password is required")

        try:
            credential = self.store.find_by_email(normalized_email, timeout=self._timeout(timeout))
        except NotFound:
            salt, dummy_hash = _dummy_credentials(self.bcrypt_cost)
            verify_password(password, dummy_hash, salt)
            logger.warning("Login rejected: unknown email")
            raise InvalidCredentials() from None

        if not credential.active:
            raise Forbidden("User is not activated")

        if not verify_password(password, credential.password_hash, credential.salt):
            logger.warning("Login rejected: wrong password for user_id=%s", credential.user_id)
            raise InvalidCredentials()

        grant = self.session_issuer.issue(credential.user_id, remember_me=remember_me)
        logger.info("Issued session %s for user_id=%s", grant.token_id, credential.user_id)
        return grant

    def logout(self) -> CookieDescriptor:
        """Sessions are stateless: logging out only clears the cookie."""
        return self.session_issuer.clear_cookie()

    def verify_session(self, token: str) -> SessionClaims:
        return self.session_issuer.verify(self._require_token(token))

    def _schedule_email(self, subject: EmailSubject, email: str, name: str, token: str | None) -> None:
        if token is None:
            return
        self.email_dispatcher.dispatch(
            EmailData(subject=subject, recipient=Recipient(email=email, name=name), token=token)
        )

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self.operation_timeout

    def _deadline(self, timeout: float | None) -> float | None:
        timeout = self._timeout(timeout)
        return None if timeout is None else self.monotonic() + timeout

    def _remaining(self, deadline: float | None) -> float | None:
        """Seconds left for the next store call of a multi-step flow."""
        if deadline is None:
            return None
        remaining = deadline - self.monotonic()
        if remaining <= 0:
            raise TransactionAborted("Deadline exceeded")
        return remaining

    def _check_password(self, password: str) -> None:
        if not password or len(password) < self.min_password_length:
            raise ValidationError(f"Password must be at least {self.min_password_length} characters")
        if len(password.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")

    def _require_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        normalized = (email or "").strip().lower()
        if not normalized:
            raise ValidationError("Email is required")
        return normalized

    def _require_token(self, token: str) -> str:
        token = (token or "").strip()
        if not token:
            raise ValidationError("Token is required")
        return token
