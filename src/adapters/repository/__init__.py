"""Repository adapters - Database implementations."""

from .postgres import PostgresCredentialStore, PostgresTransaction, run_migrations

__all__ = ["PostgresCredentialStore", "PostgresTransaction", "run_migrations"]
