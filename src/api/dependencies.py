"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the lifecycle
controller and its infrastructure adapters into routes. Settings are
read here, once per wiring, and passed on as explicit arguments.
"""

from fastapi import Depends, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresCredentialStore
from src.adapters.session.jwt_issuer import JwtSessionIssuer
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.dispatcher import BackgroundEmailDispatcher
from src.adapters.smtp.sender import SmtpEmailSender
from src.config.settings import Settings, get_settings
from src.domain.lifecycle import LifecycleController
from src.domain.exceptions import Forbidden
from src.domain.ports import EmailSender, SessionClaims


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_store(request: Request) -> PostgresCredentialStore:
    """Create credential store with connection pool from app state."""
    return PostgresCredentialStore(get_pool(request))


def get_email_dispatcher(request: Request) -> BackgroundEmailDispatcher:
    """Get the email dispatcher created during app lifespan startup."""
    return request.app.state.email_dispatcher


def build_email_sender(settings: Settings) -> EmailSender:
    """SMTP sender when a host is configured, console sender otherwise."""
    if not settings.smtp_host:
        return ConsoleEmailSender()
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender_address=settings.smtp_sender_address,
        web_base_url=settings.web_base_url,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
    )


def get_session_issuer(settings: Settings = Depends(get_settings)) -> JwtSessionIssuer:
    return JwtSessionIssuer(
        secret=settings.session_secret,
        cookie_name=settings.session_cookie_name,
        ttl_seconds=settings.session_ttl_seconds,
        remember_ttl_seconds=settings.session_remember_ttl_seconds,
        algorithm=settings.session_algorithm,
    )


def get_lifecycle_controller(
    request: Request,
    settings: Settings = Depends(get_settings),
    session_issuer: JwtSessionIssuer = Depends(get_session_issuer),
) -> LifecycleController:
    """
    Create the lifecycle controller with injected dependencies.

    Wires together the credential store, session issuer and email
    dispatcher for the domain service.
    """
    return LifecycleController(
        store=get_store(request),
        session_issuer=session_issuer,
        email_dispatcher=get_email_dispatcher(request),
        token_ttl_seconds=settings.token_ttl_seconds,
        bcrypt_cost=settings.bcrypt_cost,
        min_password_length=settings.min_password_length,
        operation_timeout=settings.operation_timeout_seconds,
    )


def get_session_claims(
    request: Request,
    settings: Settings = Depends(get_settings),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> SessionClaims:
    """
    Verify the session cookie of the current request.

    Routes that need a logged-in user depend on this.

    Raises:
        Forbidden: no session cookie, or a bad signature
        Expired: the session is past its expiry
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise Forbidden("Not logged in")
    return controller.verify_session(token)
