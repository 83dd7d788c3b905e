"""
Unit tests for domain ports and exceptions.

Tests verify:
- Enums carry the persisted string values
- Exceptions form a closed taxonomy with machine-readable kinds
- Domain purity (zero framework imports)
"""

import subprocess
from dataclasses import FrozenInstanceError
from enum import Enum

import pytest

from src.domain.exceptions import (
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
from src.domain.ports import Credential, EmailSubject, TokenType


class TestTokenTypeEnum:
    """Tests for TokenType enum."""

    def test_token_type_is_enum(self) -> None:
        assert issubclass(TokenType, Enum)

    def test_values_match_schema(self) -> None:
        """Values match the token_type CHECK constraint."""
        assert {t.value for t in TokenType} == {"none", "confirmation", "reset_password"}

    def test_is_string_enum(self) -> None:
        assert TokenType.CONFIRMATION == "confirmation"


class TestEmailSubjectEnum:
    def test_values(self) -> None:
        assert {s.value for s in EmailSubject} == {"registration", "reset_password"}


class TestCredential:
    """Tests for the Credential record."""

    def test_defaults(self) -> None:
        credential = Credential(email="a@x.com", password_hash="h", salt="s")
        assert credential.token is None
        assert credential.token_type == TokenType.NONE
        assert credential.token_expire == 0
        assert credential.active is False

    def test_is_immutable(self) -> None:
        credential = Credential(email="a@x.com", password_hash="h", salt="s")
        with pytest.raises(FrozenInstanceError):
            credential.active = True  # type: ignore[misc]


class TestExceptions:
    """Tests for the error taxonomy."""

    @pytest.mark.parametrize(
        ("exc_class", "kind"),
        [
            (ValidationError, ErrorKind.VALIDATION),
            (NotFound, ErrorKind.NOT_FOUND),
            (InvalidCredentials, ErrorKind.NOT_FOUND),
            (Expired, ErrorKind.EXPIRED),
            (Forbidden, ErrorKind.FORBIDDEN),
            (Conflict, ErrorKind.CONFLICT),
            (TransactionAborted, ErrorKind.TRANSACTION_ABORTED),
            (Fatal, ErrorKind.FATAL),
        ],
    )
    def test_kind_and_base(self, exc_class: type[LifecycleError], kind: ErrorKind) -> None:
        exc = exc_class()
        assert isinstance(exc, LifecycleError)
        assert exc.kind is kind
        assert exc.message

    def test_custom_message(self) -> None:
        exc = NotFound("Token not found")
        assert exc.message == "Token not found"
        assert str(exc) == "Token not found"

    def test_invalid_credentials_is_not_found(self) -> None:
        """Login failures look like lookups that found nothing."""
        assert issubclass(InvalidCredentials, NotFound)

    def test_every_kind_has_an_exception(self) -> None:
        kinds = {
            cls.kind
            for cls in (
                ValidationError,
                NotFound,
                Expired,
                Forbidden,
                Conflict,
                TransactionAborted,
                Fatal,
            )
        }
        assert kinds == set(ErrorKind)


class TestDomainPurity:
    """Domain layer imports no web or database framework."""

    def test_no_framework_imports(self) -> None:
        result = subprocess.run(
            ["grep", "-rE", r"^(from|import) (fastapi|psycopg|psycopg_pool|pydantic|jwt)\b", "src/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.stdout == "", f"Framework imports found in domain:\n{result.stdout}"
