"""
PostgreSQL repository adapter - Implements UserStore protocol.

This module provides the PostgreSQL implementation of the domain's
user store port using psycopg3 with raw SQL.

Consistency Design:
------------------
1. **Uniqueness**: unique indexes on lower(login) and lower(email) are the
   authoritative guard against duplicate accounts. A UniqueViolation is
   translated to LoginAlreadyUsed / EmailAlreadyUsed by index name, so two
   concurrent registrations that both passed the domain pre-check still
   end with exactly one winner.

2. **Optimistic versioning**: updates run as
   ``UPDATE ... WHERE id = %s AND version = %s``. Zero affected rows means
   another transaction changed the record first and ConcurrentUpdate is
   raised. This makes activation and reset keys single-use under
   concurrency without holding row locks across the hasher call.

3. **Exact key matching**: key columns are compared with ``=`` on plain
   VARCHAR, which is case-sensitive in PostgreSQL.
"""

import logging
from pathlib import Path
from typing import Any

from psycopg import errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from accounts.domain.exceptions import ConcurrentUpdate, EmailAlreadyUsed, LoginAlreadyUsed
from accounts.domain.models import User

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, login, email, password_hash, first_name, last_name, lang_key,
    activated, activation_key, reset_key, reset_date, authorities,
    created_at, version
"""

_LOGIN_INDEX = "users_login_lower_key"
_EMAIL_INDEX = "users_email_lower_key"


class PostgresUserStore:
    """
    Implements UserStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_login_case_insensitive(self, login: str) -> User | None:
        return self._find_one(f"SELECT {_COLUMNS} FROM users WHERE lower(login) = lower(%s)", login)

    def find_by_email_case_insensitive(self, email: str) -> User | None:
        return self._find_one(f"SELECT {_COLUMNS} FROM users WHERE lower(email) = lower(%s)", email)

    def find_by_activation_key(self, key: str) -> User | None:
        return self._find_one(f"SELECT {_COLUMNS} FROM users WHERE activation_key = %s", key)

    def find_by_reset_key(self, key: str) -> User | None:
        return self._find_one(f"SELECT {_COLUMNS} FROM users WHERE reset_key = %s", key)

    def save(self, user: User) -> User:
        """
        Insert a new user or update an existing one.

        Args:
            user: Record to persist; ``id is None`` means insert

        Returns:
            Persisted record as read back from the database

        Raises:
            LoginAlreadyUsed: users_login_lower_key violated
            EmailAlreadyUsed: users_email_lower_key violated
            ConcurrentUpdate: no row with this id and version
        """
        try:
            if user.id is None:
                return self._insert(user)
            return self._update(user)
        except errors.UniqueViolation as e:
            constraint = e.diag.constraint_name
            if constraint == _LOGIN_INDEX:
                raise LoginAlreadyUsed(user.login) from e
            if constraint == _EMAIL_INDEX:
                raise EmailAlreadyUsed(user.email) from e
            raise

    def _insert(self, user: User) -> User:
        sql = f"""
            INSERT INTO users (
                login, email, password_hash, first_name, last_name, lang_key,
                activated, activation_key, reset_key, reset_date, authorities,
                created_at, version
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s::timestamptz, NOW()), 0)
            RETURNING {_COLUMNS}
        """
        params = (
            user.login,
            user.email,
            user.password_hash,
            user.first_name,
            user.last_name,
            user.lang_key,
            user.activated,
            user.activation_key,
            user.reset_key,
            user.reset_date,
            sorted(user.authorities),
            user.created_at,
        )

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()
        return _to_user(row)

    def _update(self, user: User) -> User:
        # login, authorities and created_at are immutable through this store
        sql = f"""
            UPDATE users
            SET email = %s,
                password_hash = %s,
                first_name = %s,
                last_name = %s,
                lang_key = %s,
                activated = %s,
                activation_key = %s,
                reset_key = %s,
                reset_date = %s,
                version = version + 1
            WHERE id = %s AND version = %s
            RETURNING {_COLUMNS}
        """
        params = (
            user.email,
            user.password_hash,
            user.first_name,
            user.last_name,
            user.lang_key,
            user.activated,
            user.activation_key,
            user.reset_key,
            user.reset_date,
            user.id,
            user.version,
        )

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            raise ConcurrentUpdate(user.login)
        return _to_user(row)

    def _find_one(self, sql: str, value: str) -> User | None:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (value,))
            row = cursor.fetchone()
            conn.commit()
        return _to_user(row) if row is not None else None


def _to_user(row: dict[str, Any]) -> User:
    return User(
        id=row["id"],
        login=row["login"],
        email=row["email"],
        password_hash=row["password_hash"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        lang_key=row["lang_key"],
        activated=row["activated"],
        activation_key=row["activation_key"],
        reset_key=row["reset_key"],
        reset_date=row["reset_date"],
        authorities=frozenset(row["authorities"] or ()),
        created_at=row["created_at"],
        version=row["version"],
    )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: accounts/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
