"""
Shared fixtures for adversarial tests.

Provides a real store and controller for race condition tests. Each test
starts from empty tables.
"""

from unittest.mock import MagicMock

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresCredentialStore
from src.adapters.session.jwt_issuer import JwtSessionIssuer
from src.domain.lifecycle import LifecycleController


@pytest.fixture
def store(pool: ConnectionPool, clean_database: None) -> PostgresCredentialStore:
    return PostgresCredentialStore(pool)


@pytest.fixture
def dispatcher() -> MagicMock:
    return MagicMock()


@pytest.fixture
def controller(store, dispatcher) -> LifecycleController:
    """Controller shared by all attacker threads."""
    issuer = JwtSessionIssuer(
        secret="adversarial-secret-with-at-least-32-bytes",
        cookie_name="auth_token",
    )
    return LifecycleController(
        store=store,
        session_issuer=issuer,
        email_dispatcher=dispatcher,
        bcrypt_cost=4,
        operation_timeout=10.0,
    )
