"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for expiry tests
- The PostgreSQL connection pool used by integration and adversarial
  tests (skipped when the database is not reachable)
- Table cleanup between database tests
"""

import os
from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings

# Settings refuse to load without a signing key
os.environ.setdefault("SESSION_SECRET", "test-session-secret-with-at-least-32-bytes")


class FakeClock:
    """Callable returning epoch seconds that tests can move forward."""

    def __init__(self, now: float = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a fixed instant until advanced."""
    return FakeClock()


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool and apply migrations once per test session."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    try:
        pool.wait(timeout=5.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")

    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Remove all users and credentials and restart user_id at 1."""
    with pool.connection() as conn:
        conn.execute("TRUNCATE credentials, users RESTART IDENTITY CASCADE")
        conn.commit()
    yield
