"""
PostgreSQL store adapter - Implements Store protocol.

This module provides the PostgreSQL implementation of the domain's
store port using psycopg3 with raw SQL. The store exclusively owns its
connection pool; the domain only ever sees check_exists() and execute().

Safety Design:
--------------
1. **Bound parameters only**: execute() passes values to psycopg separately
   from the statement text. Table and column names in check_exists() are
   composed with psycopg.sql.Identifier, never string formatting.

2. **Uniqueness enforced by the database**: users.username is the primary
   key. Concurrent inserts for the same username cannot both succeed; the
   loser's UniqueViolation is raised as ConstraintViolation.

3. **Classified errors**: driver exceptions are translated into domain
   PersistenceError subclasses so that no psycopg type crosses the port.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import psycopg
from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.exceptions import ConstraintViolation, PersistenceError, StoreUnavailable
from src.domain.outcomes import QueryResult

logger = logging.getLogger(__name__)


class PostgresStore:
    """
    Implements Store protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool, timeout: float | None = None) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            timeout: Seconds to wait for a free connection (pool default if None)
        """
        self._pool = pool
        self._timeout = timeout

    def check_exists(self, table: str, column: str, value: Any) -> bool:
        query = sql.SQL("SELECT 1 FROM {} WHERE {} = %s LIMIT 1").format(
            sql.Identifier(table), sql.Identifier(column)
        )
        result = self._run(query, (value,))
        return bool(result.rows)

    def execute(self, statement: str, params: Sequence[Any] = ()) -> QueryResult:
        return self._run(statement, params)

    def ping(self) -> None:
        """Validate connectivity; raises StoreUnavailable on failure."""
        self._run("SELECT 1", ())

    def close(self) -> None:
        self._pool.close()
        logger.info("Database connection pool closed")

    def _run(self, query: str | sql.Composed, params: Sequence[Any]) -> QueryResult:
        try:
            with self._pool.connection(timeout=self._timeout) as conn:
                with conn.cursor(row_factory=dict_row) as cursor:
                    cursor.execute(query, params)
                    rows = cursor.fetchall() if cursor.description is not None else []
                    affected = cursor.rowcount
                conn.commit()
        except errors.UniqueViolation as e:
            raise ConstraintViolation(e.diag.constraint_name or "unique constraint") from e
        except (PoolTimeout, psycopg.OperationalError) as e:
            raise StoreUnavailable(str(e)) from e
        except psycopg.Error as e:
            raise PersistenceError(str(e)) from e

        return QueryResult(rows=[dict(row) for row in rows], affected=max(affected, 0))


def ensure_schema(pool: ConnectionPool) -> None:
    """
    Execute all SQL schema files from the schema directory.

    Files are executed in sorted order (alphabetically by filename).
    Each file must be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> schema/
    schema_dir = Path(__file__).parent.parent.parent.parent / "schema"

    if not schema_dir.exists():
        logger.warning(f"Schema directory not found: {schema_dir}")
        return

    sql_files = sorted(schema_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No schema files found")
        return

    logger.info(f"Applying {len(sql_files)} schema file(s)")

    for sql_file in sql_files:
        logger.info(f"Executing schema file: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Schema file applied: {sql_file.name}")
        except Exception as e:
            logger.error(f"Schema file failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database schema setup failed: {sql_file.name}") from e
