"""
Fixtures for tests running against PostgreSQL.

Every test using the store starts from empty tables; emails are captured
by a mock dispatcher instead of being delivered.
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
def controller(store, dispatcher, clock) -> LifecycleController:
    """
    Controller over the real store with a cheap bcrypt cost.

    Tokens follow the fake clock; sessions use real time so cookies are
    not already expired.
    """
    issuer = JwtSessionIssuer(
        secret="integration-secret-with-at-least-32-bytes!",
        cookie_name="auth_token",
    )
    return LifecycleController(
        store=store,
        session_issuer=issuer,
        email_dispatcher=dispatcher,
        bcrypt_cost=4,
        operation_timeout=10.0,
        clock=clock,
    )
