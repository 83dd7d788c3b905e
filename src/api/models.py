"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    password: str = Field(..., min_length=6, description="User password (min 6 characters)")
    name: str = Field(..., min_length=1, description="Display name")
    terms_ok: bool = Field(False, description="Terms and conditions accepted")


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    id: int


class ResetPasswordRequest(BaseModel):
    """Request model for a reset-password email."""

    email: EmailStr


class RecoverPasswordRequest(BaseModel):
    """Request model for setting a new password with a reset token."""

    token: str = Field(..., min_length=1)
    password: str
    confirm_password: str


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str = Field(..., min_length=1)
    remember_me: bool = False


class LoginResponse(BaseModel):
    """Response model for successful login."""

    token_id: str
    access_token: str
    expires_at: datetime


class SessionResponse(BaseModel):
    """Claims of the caller's current session."""

    token_id: str
    user_id: int
    issued_at: datetime
    expires_at: datetime


class MessageResponse(BaseModel):
    """Generic success response."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    kind: str
