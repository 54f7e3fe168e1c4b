"""
TarPit Database Connection Management
=====================================

A single SQLite connection held for the duration of one command invocation,
with transaction helpers and query convenience methods.
"""

import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator, List

from ..utils.exceptions import DatabaseError, ErrorCode

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """SQLite connection manager for one command invocation."""

    def __init__(self, db_path: str, timeout: float = 30.0):
        """Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._conn: Optional[sqlite3.Connection] = None

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new SQLite connection."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Cannot open database {self.db_path}: {e}",
                error_code=ErrorCode.DATABASE_CONNECTION,
            ) from e

        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row

        logger.debug(f"Opened database connection to {self.db_path}")
        return conn

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get the invocation's connection, opening it on first use.

        Usage:
            with db.get_connection() as conn:
                rows = conn.execute("SELECT * FROM toots").fetchall()
        """
        if self._conn is None:
            self._conn = self._create_connection()

        try:
            yield self._conn
        except sqlite3.Error as e:
            logger.error(f"Database connection error: {e}")
            if self._conn.in_transaction:
                self._conn.rollback()
            raise

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Execute operations within a database transaction.

        Usage:
            with db.transaction() as conn:
                conn.execute("INSERT INTO toots ...")
                conn.execute('INSERT INTO "toots-categories" ...')
                # Automatic commit on success, rollback on exception
        """
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.debug(f"Transaction rolled back due to error: {e}")
                raise

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Execute a SELECT query and return results.

        Args:
            query: SQL SELECT statement
            params: Query parameters

        Returns:
            List of result rows
        """
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            return cursor.fetchall()

    def execute_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Execute a query and return single result."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            return cursor.fetchone()

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Execute an INSERT/UPDATE/DELETE query and commit.

        Returns:
            Number of affected rows
        """
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def close(self) -> None:
        """Close the connection if it was opened."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug(f"Closed database connection to {self.db_path}")

    def __enter__(self) -> "DatabaseConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
