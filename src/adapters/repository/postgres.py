"""
PostgreSQL repository adapter - Implements CredentialStore protocol.

This module provides the PostgreSQL implementation of the domain's
credential store port using psycopg3 with raw SQL.

Transaction Design:
-------------------
1. **transaction()**: Scoped unit of work. Acquires a pooled connection,
   starts a SERIALIZABLE transaction, yields a PostgresTransaction handle,
   then commits on normal exit and rolls back on any exception. The
   connection is always returned to the pool.

2. **Implicit transactions**: Every method also accepts tx=None, in which
   case it runs on its own pooled connection and commits when done.

3. **Row locking**: Lookups made inside a transaction use SELECT FOR UPDATE,
   so a second request racing on the same token blocks, then fails with a
   serialization error once the first one commits.

4. **Deadlines**: A timeout is turned into one deadline per unit of work.
   It bounds the wait for a pooled connection, and before each statement
   statement_timeout (local to the transaction) is set to the time left,
   so all statements together cannot outlive it. A unit of work that
   reaches its deadline raises TransactionAborted and rolls back. COMMIT
   itself is not bounded.

psycopg errors never leave this module; they are translated to the domain
error taxonomy by _translate_errors().
"""

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import psycopg
from psycopg import Connection, errors
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.exceptions import Conflict, Fatal, NotFound, TransactionAborted
from src.domain.ports import Credential, TokenType, User

logger = logging.getLogger(__name__)

_SELECT_CREDENTIAL_BY_EMAIL = """
    SELECT user_id, email, password_hash, salt, token, token_type, token_expire, active
    FROM credentials
    WHERE email = %s
"""

_SELECT_CREDENTIAL_BY_TOKEN = """
    SELECT user_id, email, password_hash, salt, token, token_type, token_expire, active
    FROM credentials
    WHERE token = %s
"""

_FOR_UPDATE = " FOR UPDATE"

_DEADLINE_EXCEEDED = "Deadline exceeded, transaction rolled back"


@dataclass
class PostgresTransaction:
    """Handle for an open transaction, passed back into store methods."""

    connection: Connection
    deadline: float | None = None  # monotonic clock value


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map psycopg failures onto domain errors."""
    try:
        yield
    except errors.UniqueViolation as exc:
        raise Conflict() from exc
    except (errors.SerializationFailure, errors.DeadlockDetected) as exc:
        raise TransactionAborted() from exc
    except errors.QueryCanceled as exc:
        raise TransactionAborted(_DEADLINE_EXCEEDED) from exc
    except PoolTimeout as exc:
        raise TransactionAborted("No database connection available before the deadline") from exc
    except psycopg.Error as exc:
        logger.error("Database failure: %s", exc)
        raise Fatal() from exc


def _apply_statement_timeout(conn: Connection, timeout: float | None) -> None:
    if timeout is None:
        return
    milliseconds = max(int(timeout * 1000), 1)
    # is_local=true: the setting dies with the current transaction
    conn.execute("SELECT set_config('statement_timeout', %s, true)", (str(milliseconds),))


def _row_to_credential(row: tuple) -> Credential:
    return Credential(
        user_id=row[0],
        email=row[1],
        password_hash=row[2],
        salt=row[3],
        token=row[4],
        token_type=TokenType(row[5]),
        token_expire=row[6],
        active=row[7],
    )


class PostgresCredentialStore:
    """
    Implements CredentialStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            clock: Monotonic seconds used to track deadlines
        """
        self._pool = pool
        self._clock = clock

    def _deadline(self, timeout: float | None) -> float | None:
        return None if timeout is None else self._clock() + timeout

    def _arm_deadline(self, conn: Connection, deadline: float | None) -> None:
        """Limit the next statements to the time left before the deadline."""
        if deadline is None:
            return
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise TransactionAborted(_DEADLINE_EXCEEDED)
        _apply_statement_timeout(conn, remaining)

    @contextmanager
    def transaction(self, timeout: float | None = None) -> Iterator[PostgresTransaction]:
        """
        Run a unit of work inside a SERIALIZABLE transaction.

        Args:
            timeout: Seconds allowed for the whole unit of work, from
                acquiring the connection to the last statement; None waits
                indefinitely

        Raises:
            TransactionAborted: serialization failure, deadlock or deadline
            Fatal: any other database failure, including a failed commit
        """
        deadline = self._deadline(timeout)
        with _translate_errors(), self._pool.connection(timeout=timeout) as conn:
            with conn.transaction():
                conn.execute("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE")
                yield PostgresTransaction(conn, deadline)

    @contextmanager
    def _connection(
        self, tx: PostgresTransaction | None, timeout: float | None = None
    ) -> Iterator[Connection]:
        """Yield the transaction's connection, or a fresh pooled one."""
        if tx is not None:
            with _translate_errors():
                self._arm_deadline(tx.connection, tx.deadline)
                yield tx.connection
            return

        deadline = self._deadline(timeout)
        with _translate_errors(), self._pool.connection(timeout=timeout) as conn:
            self._arm_deadline(conn, deadline)
            yield conn

    def find_by_email(
        self,
        email: str,
        tx: PostgresTransaction | None = None,
        timeout: float | None = None,
    ) -> Credential:
        """
        Fetch the credential for a normalized email.

        Inside a transaction the row stays locked until commit.

        Raises:
            NotFound: no credential with this email
        """
        sql = _SELECT_CREDENTIAL_BY_EMAIL + (_FOR_UPDATE if tx is not None else "")
        with self._connection(tx, timeout) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        if row is None:
            raise NotFound("User credentials not found")
        return _row_to_credential(row)

    def find_by_token(
        self,
        token: str,
        tx: PostgresTransaction | None = None,
        timeout: float | None = None,
    ) -> Credential:
        """
        Fetch the credential currently carrying a token.

        Raises:
            NotFound: no credential carries this token
        """
        sql = _SELECT_CREDENTIAL_BY_TOKEN + (_FOR_UPDATE if tx is not None else "")
        with self._connection(tx, timeout) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token,))
            row = cursor.fetchone()
        if row is None:
            raise NotFound("Token not found")
        return _row_to_credential(row)

    def find_user(
        self,
        user_id: int,
        tx: PostgresTransaction | None = None,
        timeout: float | None = None,
    ) -> User:
        sql = "SELECT user_id, name, created_at FROM users WHERE user_id = %s"
        with self._connection(tx, timeout) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (user_id,))
            row = cursor.fetchone()
        if row is None:
            raise NotFound("User not found")
        return User(user_id=row[0], name=row[1], created_at=row[2])

    def create(self, tx: PostgresTransaction | None, user: User, credential: Credential) -> int:
        """
        Insert the user profile and its credential.

        Both rows are written on the same connection, so they commit or
        roll back together.

        Returns:
            The generated user_id

        Raises:
            Conflict: the email is already registered
        """
        user_sql = """
            INSERT INTO users (name, created_at)
            VALUES (%s, %s)
            RETURNING user_id
        """
        credential_sql = """
            INSERT INTO credentials
                (user_id, email, password_hash, salt, token, token_type, token_expire, active)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        """

        with self._connection(tx) as conn, conn.cursor() as cursor:
            cursor.execute(user_sql, (user.name, user.created_at))
            user_id = cursor.fetchone()[0]
            cursor.execute(
                credential_sql,
                (
                    user_id,
                    credential.email,
                    credential.password_hash,
                    credential.salt,
                    credential.token,
                    credential.token_type.value,
                    credential.token_expire,
                    credential.active,
                ),
            )
        return user_id

    def update(self, tx: PostgresTransaction | None, credential: Credential) -> None:
        """
        Replace the mutable fields of a credential.

        Raises:
            NotFound: no credential for credential.user_id
        """
        sql = """
            UPDATE credentials
            SET password_hash = %s,
                salt = %s,
                token = %s,
                token_type = %s,
                token_expire = %s,
                active = %s
            WHERE user_id = %s
        """
        with self._connection(tx) as conn, conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    credential.password_hash,
                    credential.salt,
                    credential.token,
                    credential.token_type.value,
                    credential.token_expire,
                    credential.active,
                    credential.user_id,
                ),
            )
            if cursor.rowcount == 0:
                raise NotFound("User credentials not found")

    def consume_token(
        self,
        tx: PostgresTransaction | None,
        user_id: int,
        token: str,
        token_type: TokenType,
    ) -> None:
        """
        Clear the token fields, matching on the exact token and purpose.

        Raises:
            NotFound: the token was already consumed or replaced
        """
        sql = """
            UPDATE credentials
            SET token = NULL, token_type = %s, token_expire = 0
            WHERE user_id = %s AND token = %s AND token_type = %s
        """
        with self._connection(tx) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (TokenType.NONE.value, user_id, token, token_type.value))
            if cursor.rowcount == 0:
                raise NotFound("Token not found")


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)
                # Committed when the pooled connection is returned

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
