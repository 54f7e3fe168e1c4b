"""
Unit Tests for Database Models
==============================

Tests for timestamp encoding, model validation and run statistics.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from tarpit.database.models import (
    IngestStats,
    Toot,
    TraceEntry,
    from_db_timestamp,
    to_db_timestamp,
)


class TestTimestamps:
    """Stored timestamp encoding."""

    def test_encodes_utc_with_milliseconds(self):
        value = datetime(2024, 9, 5, 12, 0, 1, 123456, tzinfo=timezone.utc)
        assert to_db_timestamp(value) == "2024-09-05T12:00:01.123"

    def test_converts_other_offsets_to_utc(self):
        value = datetime(2024, 9, 5, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_db_timestamp(value) == "2024-09-05T12:00:00.000"

    def test_naive_datetimes_are_utc(self):
        assert to_db_timestamp(datetime(2024, 9, 5, 12, 0)) == "2024-09-05T12:00:00.000"

    def test_decode(self):
        decoded = from_db_timestamp("2024-09-05T12:00:01.123")
        assert decoded == datetime(2024, 9, 5, 12, 0, 1, 123000, tzinfo=timezone.utc)
        assert from_db_timestamp(None) is None

    def test_lexical_order_is_chronological(self):
        earlier = datetime(2024, 9, 5, 9, 59, 59, tzinfo=timezone.utc)
        later = datetime(2024, 9, 5, 10, 0, 0, tzinfo=timezone.utc)
        assert to_db_timestamp(earlier) < to_db_timestamp(later)


class TestToot:
    """Toot model validation."""

    def test_naive_pub_date_becomes_utc(self):
        toot = Toot(guid="g", link="l", pub_date=datetime(2024, 1, 1), description="d")
        assert toot.pub_date.tzinfo == timezone.utc

    def test_empty_guid_rejected(self):
        with pytest.raises(PydanticValidationError):
            Toot(guid="", link="l", pub_date=datetime(2024, 1, 1), description="d")

    def test_from_db_row(self):
        toot = Toot.from_db_row(
            {
                "id": 3,
                "guid": "https://example.social/@test/3",
                "link": "https://example.social/@test/3",
                "pubDate": "2024-09-06T18:30:00.000",
                "description": "<p>hi</p>",
            }
        )
        assert toot.id == 3
        assert toot.pub_date == datetime(2024, 9, 6, 18, 30, tzinfo=timezone.utc)


class TestTraceEntry:
    def test_from_db_row_without_build_date(self):
        entry = TraceEntry.from_db_row(
            {
                "timestamp": "2024-09-07T10:00:00.000",
                "lastBuildDate": None,
                "description": "failed with error boom",
            }
        )
        assert entry.last_build_date is None
        assert entry.description == "failed with error boom"


class TestIngestStats:
    """Run statistics."""

    def test_description_format(self):
        stats = IngestStats(incomplete=1, parsed=4, skipped=3, inserted=1)
        assert stats.description == "success: incomplete 1 parsed 4 skipped 3 inserted 1"

    def test_empty_run_description(self):
        assert IngestStats().description == "success: incomplete 0 parsed 0 skipped 0 inserted 0"

    def test_total(self):
        assert IngestStats(incomplete=2, parsed=5, skipped=1, inserted=4).total == 7
