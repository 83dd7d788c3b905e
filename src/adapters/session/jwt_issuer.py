"""
JWT session issuer adapter - Implements SessionIssuer protocol.

Sessions are stateless: nothing is stored server-side, a token is valid
while its HMAC signature checks out and its expiry has not passed.
Logging out only replaces the browser cookie with an expired one.
"""

import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

import jwt

from src.domain.exceptions import Expired, Fatal, Forbidden
from src.domain.ports import CookieDescriptor, SessionClaims, SessionGrant

_REQUIRED_CLAIMS = ["jti", "sub", "iat", "exp"]


def _to_datetime(epoch_seconds: int) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


class JwtSessionIssuer:
    """
    Issues and verifies signed session tokens via PyJWT.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        secret: str,
        cookie_name: str,
        ttl_seconds: int = 60 * 60 * 24,
        remember_ttl_seconds: int = 60 * 60 * 24 * 7,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._cookie_name = cookie_name
        self._ttl_seconds = ttl_seconds
        self._remember_ttl_seconds = remember_ttl_seconds
        self._algorithm = algorithm
        self._clock = clock

    def issue(self, user_id: int, remember_me: bool = False) -> SessionGrant:
        """
        Sign a session token for a user.

        Args:
            user_id: Subject of the token
            remember_me: Use the extended lifetime

        Raises:
            Fatal: the token could not be signed
        """
        now = int(self._clock())
        ttl = self._remember_ttl_seconds if remember_me else self._ttl_seconds
        token_id = uuid.uuid4().hex
        claims = {"jti": token_id, "sub": str(user_id), "iat": now, "exp": now + ttl}

        try:
            access_token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
            raise Fatal("Unable to sign session token") from exc

        expires_at = _to_datetime(now + ttl)
        return SessionGrant(
            token_id=token_id,
            access_token=access_token,
            issued_at=_to_datetime(now),
            expires_at=expires_at,
            cookie=CookieDescriptor(
                name=self._cookie_name,
                value=access_token,
                expires_at=expires_at,
            ),
        )

    def verify(self, token: str) -> SessionClaims:
        """
        Check signature and expiry of a session token.

        Expiry is checked against the injected clock rather than PyJWT's.

        Raises:
            Forbidden: bad signature or malformed token
            Expired: the token is past its expiry
        """
        try:
            claims = jwt.decode(
                token,
                key=self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": _REQUIRED_CLAIMS},
            )
            user_id = int(claims["sub"])
        except (jwt.InvalidTokenError, ValueError) as exc:
            raise Forbidden("Invalid session token") from exc

        if int(self._clock()) >= claims["exp"]:
            raise Expired("Session expired")

        return SessionClaims(
            token_id=claims["jti"],
            user_id=user_id,
            issued_at=_to_datetime(claims["iat"]),
            expires_at=_to_datetime(claims["exp"]),
        )

    def clear_cookie(self) -> CookieDescriptor:
        """Cookie that overwrites the session cookie and expires immediately."""
        return CookieDescriptor(
            name=self._cookie_name,
            value="",
            expires_at=_to_datetime(int(self._clock()) + 1),
        )
