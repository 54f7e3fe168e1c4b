"""
Trace Repository
================

Append-only run log. Writing a trace row is best effort: a failure is
logged and reported through the return value, never raised.
"""

from datetime import datetime
from typing import List, Optional

from ..database.models import TraceEntry, to_db_timestamp
from ..database.connection import DatabaseConnection
from ..utils.logging import get_logger_for_component


class TraceRepository:
    """Repository for the trace table."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("trace_repository")

    def record(
        self,
        timestamp: datetime,
        last_build_date: Optional[datetime],
        description: str,
    ) -> bool:
        """Append one trace row.

        Args:
            timestamp: When the run started
            last_build_date: The feed's lastBuildDate, if known
            description: Run outcome text

        Returns:
            True if the row was written, False otherwise
        """
        try:
            self.db.execute_update(
                "INSERT INTO trace (timestamp, lastBuildDate, description) VALUES (?, ?, ?)",
                (
                    to_db_timestamp(timestamp),
                    to_db_timestamp(last_build_date) if last_build_date else None,
                    description,
                ),
            )
            return True
        except Exception as e:
            self.logger.error(f"failed to update trace with {e}")
            return False

    def get_recent_entries(self, limit: Optional[int] = None) -> List[TraceEntry]:
        """Get trace entries, newest first."""
        query = "SELECT * FROM trace ORDER BY timestamp DESC, rowid DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        rows = self.db.execute_query(query, params)
        return [TraceEntry.from_db_row(row) for row in rows]
