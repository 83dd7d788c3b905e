"""
API v1 routes.

Defines REST endpoints for the credential lifecycle API. Handlers are
plain functions so FastAPI runs each request on its own worker thread;
domain errors are turned into responses by src.api.errors.
"""

from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import get_lifecycle_controller, get_session_claims
from src.api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RecoverPasswordRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    SessionResponse,
)
from src.domain.lifecycle import LifecycleController
from src.domain.ports import CookieDescriptor, SessionClaims

router = APIRouter(tags=["v1"])


def _set_cookie(response: Response, cookie: CookieDescriptor) -> None:
    response.set_cookie(
        key=cookie.name,
        value=cookie.value,
        expires=cookie.expires_at,
        path=cookie.path,
        httponly=True,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Terms not accepted or invalid input"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
    },
    summary="Register a new user",
    description="Create an unconfirmed account. A confirmation link is sent to the email.",
)
def register(
    request_data: RegisterRequest,
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> RegisterResponse:
    user_id = controller.register(
        request_data.email,
        request_data.password,
        request_data.name,
        request_data.terms_ok,
    )
    return RegisterResponse(message="Confirmation email sent", id=user_id)


@router.get(
    "/register/confirm",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or expired token"},
        404: {"model": ErrorResponse, "description": "Unknown or already used token"},
    },
    summary="Confirm registration",
    description="Activate the account with the token from the confirmation email.",
)
def confirm_registration(
    token: str = "",
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> MessageResponse:
    controller.confirm_registration(token)
    return MessageResponse(message="Account activated")


@router.post(
    "/password/reset",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Account not activated"},
        404: {"model": ErrorResponse, "description": "Unknown email"},
    },
    summary="Request a password reset",
    description="Send a password recovery link to the account's email.",
)
def reset_password(
    request_data: ResetPasswordRequest,
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> MessageResponse:
    controller.reset_password(request_data.email)
    return MessageResponse(message="Password reset email sent")


@router.post(
    "/password/recover",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid passwords or expired token"},
        404: {"model": ErrorResponse, "description": "Unknown or already used token"},
    },
    summary="Set a new password",
    description="Complete a password reset with the token from the recovery email.",
)
def recover_password(
    request_data: RecoverPasswordRequest,
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> MessageResponse:
    controller.recover_password(
        request_data.token,
        request_data.password,
        request_data.confirm_password,
    )
    return MessageResponse(message="Password updated")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        403: {"model": ErrorResponse, "description": "Account not activated"},
    },
    summary="Log in",
    description="Exchange email and password for a signed session token and cookie.",
)
def login(
    request_data: LoginRequest,
    response: Response,
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> LoginResponse:
    grant = controller.login(
        request_data.email,
        request_data.password,
        remember_me=request_data.remember_me,
    )
    _set_cookie(response, grant.cookie)
    return LoginResponse(
        token_id=grant.token_id,
        access_token=grant.access_token,
        expires_at=grant.expires_at,
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
    description="Replace the session cookie with an expired one.",
)
def logout(
    response: Response,
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> MessageResponse:
    _set_cookie(response, controller.logout())
    return MessageResponse(message="Logged out")


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Session expired"},
        403: {"model": ErrorResponse, "description": "Missing or invalid session cookie"},
    },
    summary="Current session",
    description="Verify the session cookie and return its claims.",
)
def current_session(claims: SessionClaims = Depends(get_session_claims)) -> SessionResponse:
    return SessionResponse(
        token_id=claims.token_id,
        user_id=claims.user_id,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
