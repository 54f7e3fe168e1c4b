"""
Toot Repository
===============

Data access for toots, categories and the toots-categories join table.
"""

import sqlite3
from typing import Iterable, List, Optional

from ..database.models import Toot, Category, to_db_timestamp
from ..database.connection import DatabaseConnection
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


def is_unique_violation(error: sqlite3.IntegrityError) -> bool:
    """Tell whether an IntegrityError comes from a UNIQUE constraint."""
    code = getattr(error, "sqlite_errorcode", None)
    if code is not None:
        return code == sqlite3.SQLITE_CONSTRAINT_UNIQUE
    return "UNIQUE constraint failed" in str(error)


class TootRepository:
    """Repository for toot and category rows."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize toot repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("toot_repository")

    def insert_toot(self, toot: Toot, categories: Iterable[str] = ()) -> Optional[int]:
        """Insert a toot and link it to its categories in one transaction.

        The insert uses abort-on-conflict; a toot whose guid is already
        stored leaves the database untouched.

        Args:
            toot: Toot to insert
            categories: Category labels attached to the toot

        Returns:
            New toot ID, or None if a toot with the same guid already exists

        Raises:
            DatabaseError: On any other store failure
        """
        try:
            with self.db.transaction() as conn:
                try:
                    cursor = conn.execute(
                        """
                        INSERT OR ABORT INTO toots (guid, link, pubDate, description)
                        VALUES (?, ?, ?, ?)
                        """,
                        (toot.guid, toot.link, to_db_timestamp(toot.pub_date), toot.description),
                    )
                except sqlite3.IntegrityError as e:
                    if is_unique_violation(e):
                        self.logger.debug(f"Toot already stored: {toot.guid}")
                        return None
                    raise

                toot_id = cursor.lastrowid
                for value in categories:
                    category_id = self._get_or_create_category(conn, value)
                    conn.execute(
                        'INSERT INTO "toots-categories" (toot, category) VALUES (?, ?)',
                        (toot_id, category_id),
                    )

            self.logger.debug(f"Created toot {toot_id}: {toot.guid}")
            return toot_id

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to insert toot {toot.guid}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def _get_or_create_category(self, conn: sqlite3.Connection, value: str) -> int:
        """Look up a category by value, inserting it if absent."""
        row = conn.execute(
            "SELECT id FROM categories WHERE value = ?", (value,)
        ).fetchone()
        if row:
            return row["id"]

        cursor = conn.execute(
            "INSERT OR IGNORE INTO categories (value) VALUES (?)", (value,)
        )
        if cursor.rowcount == 1:
            return cursor.lastrowid

        # Ignored: another writer created it in the meantime
        row = conn.execute(
            "SELECT id FROM categories WHERE value = ?", (value,)
        ).fetchone()
        return row["id"]

    def get_recent_toots(self, limit: Optional[int] = None) -> List[Toot]:
        """Get toots ordered by publication date, newest first.

        Args:
            limit: Maximum number of toots; None for all

        Returns:
            List of Toot models
        """
        query = "SELECT * FROM toots ORDER BY pubDate DESC, id DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        try:
            rows = self.db.execute_query(query, params)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to query toots: {e}",
                query=query,
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

        return [Toot.from_db_row(row) for row in rows]

    def get_toot_by_guid(self, guid: str) -> Optional[Toot]:
        """Get a toot by its guid."""
        row = self.db.execute_one("SELECT * FROM toots WHERE guid = ?", (guid,))
        return Toot.from_db_row(row) if row else None

    def get_categories_for_toot(self, toot_id: int) -> List[Category]:
        """Get the categories linked to a toot, one entry per link row."""
        rows = self.db.execute_query(
            """
            SELECT c.id, c.value FROM "toots-categories" tc
            JOIN categories c ON c.id = tc.category
            WHERE tc.toot = ?
            ORDER BY tc.rowid
            """,
            (toot_id,),
        )
        return [Category(id=row["id"], value=row["value"]) for row in rows]

    def count_toots(self) -> int:
        """Count stored toots."""
        row = self.db.execute_one("SELECT COUNT(*) FROM toots")
        return row[0]
