"""
Unit tests for API request/response models.

Tests Pydantic model validation for the lifecycle endpoints.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    RecoverPasswordRequest,
    RegisterRequest,
    ResetPasswordRequest,
)


class TestRegisterRequest:
    """Tests for RegisterRequest model."""

    def test_valid_register_request(self) -> None:
        request = RegisterRequest(email="user@example.com", password="secure1", name="Ann", terms_ok=True)
        assert request.email == "user@example.com"
        assert request.terms_ok is True

    def test_terms_default_false(self) -> None:
        """Missing terms_ok reaches the domain as False."""
        request = RegisterRequest(email="user@example.com", password="secure1", name="Ann")
        assert request.terms_ok is False

    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(email="not-an-email", password="secure1", name="Ann")
        assert "email" in str(exc_info.value)

    def test_password_minimum_length(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(email="user@example.com", password="short", name="Ann")
        assert "password" in str(exc_info.value)

    def test_password_exactly_6_chars(self) -> None:
        request = RegisterRequest(email="user@example.com", password="exact6", name="Ann")
        assert request.password == "exact6"

    def test_missing_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="user@example.com", password="secure1")  # type: ignore[call-arg]


class TestResetPasswordRequest:
    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResetPasswordRequest(email="nope")


class TestRecoverPasswordRequest:
    """Password rules are enforced by the domain, not the model."""

    def test_mismatched_passwords_accepted_by_model(self) -> None:
        request = RecoverPasswordRequest(token="abc", password="abcdef", confirm_password="abcdeg")
        assert request.password != request.confirm_password

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RecoverPasswordRequest(token="", password="abcdef", confirm_password="abcdef")


class TestLoginModels:
    def test_remember_me_default_false(self) -> None:
        assert LoginRequest(email="user@example.com", password="pw").remember_me is False

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoginRequest(email="user@example.com", password="")

    def test_login_response_serializes_expiry(self) -> None:
        expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
        response = LoginResponse(token_id="id", access_token="jwt", expires_at=expires)
        assert response.model_dump(mode="json")["expires_at"].startswith("2030-01-01T00:00:00")


class TestErrorResponse:
    def test_fields(self) -> None:
        error = ErrorResponse(detail="Token expired", kind="expired")
        assert error.model_dump() == {"detail": "Token expired", "kind": "expired"}
