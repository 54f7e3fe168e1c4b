"""
TarPit Database Schema
======================

SQLite schema for the toot store. Creates four tables:
- toots: feed items, unique on guid
- categories: category labels, unique on value
- toots-categories: join table with cascading foreign keys
- trace: one append-only summary row per ingestion run

Every statement uses IF NOT EXISTS, so creation is safe to repeat against
an existing database.
"""

import sqlite3
import logging
from pathlib import Path

from ..utils.exceptions import DatabaseError, ErrorCode

logger = logging.getLogger(__name__)

TOOTS_TABLE = "toots"
CATEGORIES_TABLE = "categories"
TOOTS_CATEGORIES_TABLE = '"toots-categories"'
TRACE_TABLE = "trace"

EXPECTED_TABLES = {"toots", "categories", "toots-categories", "trace"}


class DatabaseSchema:
    """Database schema manager for the TarPit SQLite database."""

    def __init__(self, db_path: str):
        """Initialize database schema manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)

    def create_tables(self) -> None:
        """Create all database tables.

        Raises:
            DatabaseError: If the database cannot be opened or a table cannot be created
        """
        try:
            if str(self.db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            with sqlite3.connect(self.db_path) as conn:
                conn.execute("PRAGMA foreign_keys = ON")

                # The join table references toots and categories by name
                self._create_toots_table(conn)
                self._create_categories_table(conn)
                self._create_toots_categories_table(conn)
                self._create_trace_table(conn)

                self._create_indexes(conn)

                conn.commit()
            logger.info(f"Database schema created at {self.db_path}")

        except (sqlite3.Error, OSError) as e:
            raise DatabaseError(
                f"Failed to create schema in {self.db_path}: {e}",
                error_code=ErrorCode.DATABASE_SCHEMA,
            ) from e

    def _create_toots_table(self, conn: sqlite3.Connection) -> None:
        logger.info("creating table `toots`")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS toots (
                id INTEGER PRIMARY KEY,
                guid TEXT UNIQUE NOT NULL,
                link TEXT NOT NULL,
                pubDate TEXT NOT NULL,
                description TEXT NOT NULL
            )
        """
        )

    def _create_categories_table(self, conn: sqlite3.Connection) -> None:
        logger.info("creating table `categories`")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY,
                value TEXT UNIQUE NOT NULL
            )
        """
        )

    def _create_toots_categories_table(self, conn: sqlite3.Connection) -> None:
        """Create the join table. No uniqueness on (toot, category)."""
        logger.info("creating join table `toots-categories`")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS "toots-categories" (
                toot INTEGER NOT NULL,
                category INTEGER NOT NULL,
                FOREIGN KEY (toot) REFERENCES toots(id) ON DELETE CASCADE,
                FOREIGN KEY (category) REFERENCES categories(id) ON DELETE CASCADE
            )
        """
        )

    def _create_trace_table(self, conn: sqlite3.Connection) -> None:
        logger.info("creating table `trace`")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS trace (
                timestamp TEXT NOT NULL,
                lastBuildDate TEXT,
                description TEXT NOT NULL
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes for the listing and join queries."""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_toots_pubdate ON toots(pubDate)",
            'CREATE INDEX IF NOT EXISTS idx_toots_categories_toot ON "toots-categories"(toot)',
            "CREATE INDEX IF NOT EXISTS idx_trace_timestamp ON trace(timestamp)",
        ]

        for index_sql in indexes:
            conn.execute(index_sql)

    def drop_tables(self) -> None:
        """Drop all tables (for testing/reset purposes)."""
        with sqlite3.connect(self.db_path) as conn:
            # Drop in reverse dependency order
            tables = [
                TRACE_TABLE,
                TOOTS_CATEGORIES_TABLE,
                CATEGORIES_TABLE,
                TOOTS_TABLE,
            ]

            for table in tables:
                conn.execute(f"DROP TABLE IF EXISTS {table}")

            conn.commit()
            logger.info("All database tables dropped")

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection with foreign keys enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def verify_schema(self) -> bool:
        """Verify database schema is correctly created."""
        conn = None
        try:
            conn = self.get_connection()
            cursor = conn.execute(
                """
                SELECT name FROM sqlite_master
                WHERE type='table' AND name NOT LIKE 'sqlite_%'
                ORDER BY name
            """
            )

            tables = {row[0] for row in cursor.fetchall()}

            missing = EXPECTED_TABLES - tables
            if missing:
                logger.error(
                    f"Missing tables. Expected: {EXPECTED_TABLES}, Found: {tables}"
                )
                return False

            violations = conn.execute("PRAGMA foreign_key_check").fetchall()
            if violations:
                logger.error(f"Foreign key violations found: {len(violations)}")
                return False

            logger.info("Database schema verification passed")
            return True

        except sqlite3.Error as e:
            logger.error(f"Schema verification failed: {e}")
            return False
        finally:
            if conn is not None:
                conn.close()


def create_tables(db_path: str) -> None:
    """Convenience function to create database tables.

    Args:
        db_path: Path to SQLite database file
    """
    schema = DatabaseSchema(db_path)
    schema.create_tables()
