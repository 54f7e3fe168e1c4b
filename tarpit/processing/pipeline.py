"""
Ingestion Pipeline
==================

Stores the items of one parsed feed: skips incomplete items, inserts new
toots with their categories, counts duplicates, and writes exactly one trace
row per run whatever the outcome.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional
from dataclasses import dataclass, field

from ..database.models import IngestStats, Toot
from ..database.connection import DatabaseConnection
from ..ingestion.feed_manager import ParsedFeed, ParsedToot
from ..storage.toot_repository import TootRepository
from ..storage.trace_repository import TraceRepository
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import TarPitError, FeedValidationError


@dataclass
class IngestRunResult:
    """Outcome of one ingestion run."""
    description: str
    succeeded: bool
    stats: IngestStats = field(default_factory=IngestStats)
    started_at: Optional[datetime] = None
    last_build_date: Optional[datetime] = None
    trace_recorded: bool = False


class IngestionPipeline:
    """Feed-to-store ingestion for a single feed."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize ingestion pipeline.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.toots = TootRepository(db_connection)
        self.traces = TraceRepository(db_connection)
        self.logger = get_logger_for_component("pipeline")

    @staticmethod
    def validate_feed(feed: ParsedFeed) -> None:
        """Reject anything that is not an RSS channel.

        Raises:
            FeedValidationError: For Atom, JSON or unrecognised feeds
        """
        if not feed.metadata.is_rss:
            raise FeedValidationError(
                "not a Mastodon RSS feed?", feed_type=feed.metadata.feed_type or None
            )

    def ingest_items(self, items: Iterable[ParsedToot]) -> IngestStats:
        """Store feed items in order and count the outcomes.

        Raises:
            DatabaseError: On a store failure other than a duplicate guid;
                items after the failing one are not processed
        """
        stats = IngestStats()

        for item in items:
            if not item.is_complete:
                stats.incomplete += 1
                self.logger.debug(f"Skipping incomplete item {item.guid!r}")
                continue

            stats.parsed += 1
            toot = Toot(
                guid=item.guid,
                link=item.link,
                pub_date=item.published,
                description=item.description,
            )

            toot_id = self.toots.insert_toot(toot, item.categories)
            if toot_id is None:
                # Assumed duplicate of a stored toot
                stats.skipped += 1
                continue

            stats.inserted += 1

        return stats

    def run(self, load_feed: Callable[[], ParsedFeed]) -> IngestRunResult:
        """Load, validate and store one feed, then record the trace row.

        Errors while loading, validating or storing end the run; they become
        the run's description instead of propagating. The trace row is
        written on every path out of this method.

        Args:
            load_feed: Callable returning the parsed feed

        Returns:
            Run result with statistics and description
        """
        result = IngestRunResult(
            description="", succeeded=False, started_at=datetime.now(timezone.utc)
        )

        try:
            with PerformanceLogger(self.logger, "feed ingestion"):
                feed = load_feed()
                self.validate_feed(feed)
                result.last_build_date = feed.metadata.last_build_date
                result.stats = self.ingest_items(feed.items)

            result.description = result.stats.description
            result.succeeded = True
        except Exception as e:
            self.logger.error(f"Ingestion failed: {e}")
            details = e.message if isinstance(e, TarPitError) else str(e)
            result.description = f"failed with error {details}"
        finally:
            result.trace_recorded = self.traces.record(
                result.started_at, result.last_build_date, result.description
            )

        return result
