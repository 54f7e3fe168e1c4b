"""
TarPit Data Models
==================

Pydantic models matching the database schema, the run statistics of an
ingestion run, and the timestamp encoding used for stored dates.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

# Stored dates are UTC ISO-8601 text with millisecond precision, so that
# lexical order matches chronological order.
DB_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def to_db_timestamp(value: datetime) -> str:
    """Encode a datetime for storage. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(DB_TIMESTAMP_FORMAT)[:-3]


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Decode a stored timestamp into an aware UTC datetime."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Toot(BaseModel):
    """A stored feed item."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    guid: str = Field(..., min_length=1, description="Globally unique item identifier")
    link: str = Field(..., description="Item URL")
    pub_date: datetime = Field(..., description="Publication date")
    description: str = Field(..., description="HTML description")

    @field_validator("pub_date")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Naive publication dates are UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "Toot":
        """Create Toot from a ``toots`` row."""
        data = dict(row)
        return cls(
            id=data["id"],
            guid=data["guid"],
            link=data["link"],
            pub_date=from_db_timestamp(data["pubDate"]),
            description=data["description"],
        )

    def __str__(self) -> str:
        return f"Toot({self.guid})"


class Category(BaseModel):
    """A category label shared between toots."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    value: str = Field(..., min_length=1, description="Category label")

    def __str__(self) -> str:
        return f"Category({self.value})"


class TraceEntry(BaseModel):
    """Summary row written once per ingestion run."""
    timestamp: datetime = Field(..., description="When the run started")
    last_build_date: Optional[datetime] = Field(default=None, description="Feed's own lastBuildDate")
    description: str = Field(..., description="Human-readable run outcome")

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "TraceEntry":
        data = dict(row)
        return cls(
            timestamp=from_db_timestamp(data["timestamp"]),
            last_build_date=from_db_timestamp(data["lastBuildDate"]),
            description=data["description"],
        )


@dataclass
class IngestStats:
    """Counters for one ingestion run."""
    incomplete: int = 0
    parsed: int = 0
    skipped: int = 0
    inserted: int = 0

    @property
    def total(self) -> int:
        """Items seen, complete or not."""
        return self.incomplete + self.parsed

    @property
    def description(self) -> str:
        """Trace text for a completed run."""
        return (
            f"success: incomplete {self.incomplete} parsed {self.parsed} "
            f"skipped {self.skipped} inserted {self.inserted}"
        )
