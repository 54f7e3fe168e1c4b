"""
RSS Feed Manager
================

Loads a feed from a local file or a URL and parses it with feedparser into
plain item records. Fields the feed does not carry are left as None; deciding
what to do with incomplete items is up to the ingestion pipeline.
"""

import calendar
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional
from dataclasses import dataclass, field

import feedparser
import requests

from ..config.settings import TarPitSettings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FeedError, FeedFetchError, ErrorCode
from ..utils.validators import URLValidator, is_remote_source


@dataclass
class ParsedToot:
    """A feed item as parsed, before validation."""

    guid: Optional[str] = None
    link: Optional[str] = None
    published: Optional[datetime] = None
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """Whether every field required for storage is present and not blank."""
        if self.published is None:
            return False
        return all(
            value is not None and value.strip()
            for value in (self.guid, self.link, self.description)
        )


@dataclass
class FeedMetadata:
    """Channel-level feed information."""

    feed_type: str
    title: Optional[str] = None
    link: Optional[str] = None
    last_build_date: Optional[datetime] = None

    @property
    def is_rss(self) -> bool:
        """Whether feedparser identified an RSS channel (any RSS version)."""
        return self.feed_type.startswith("rss")


@dataclass
class ParsedFeed:
    """A parsed feed: metadata plus its items in document order."""

    metadata: FeedMetadata
    items: List[ParsedToot] = field(default_factory=list)


def _struct_time_to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert a feedparser UTC struct_time to an aware datetime."""
    if not value:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (ValueError, OverflowError, TypeError):
        return None


def _text_or_none(value: Optional[str]) -> Optional[str]:
    """Empty or whitespace-only element text counts as absent."""
    if value is None or not value.strip():
        return None
    return value


def _item_link(entry: Any) -> Optional[str]:
    """The item's own <link>, ignoring a link feedparser copied from a permalink guid.

    A real <link> element always leaves an ``alternate`` entry in ``links``;
    a guid used as the link does not.
    """
    for link in entry.get("links") or []:
        if link.get("rel", "alternate") == "alternate" and link.get("href"):
            return _text_or_none(entry.get("link"))
    return None


class FeedManager:
    """Feed loader and parser."""

    def __init__(self, settings: Optional[TarPitSettings] = None):
        """Initialize feed manager.

        Args:
            settings: Application settings (defaults are used when omitted)
        """
        self.settings = settings or TarPitSettings()
        self.logger = get_logger_for_component("feed_manager")

        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": f"{self.settings.app_name}/{self.settings.version}",
                "Accept": "application/rss+xml, application/xml, text/xml",
            }
        )

    def load(self, source: str) -> ParsedFeed:
        """Load a feed from a URL or a local file path."""
        if is_remote_source(source):
            return self.fetch_feed(source)
        return self.load_feed(source)

    def fetch_feed(self, feed_url: str) -> ParsedFeed:
        """
        Fetch and parse a feed from a URL.

        Args:
            feed_url: Feed URL to fetch

        Returns:
            Parsed feed

        Raises:
            FeedFetchError: If the feed cannot be fetched
            FeedError: If the content cannot be parsed as a feed
        """
        url = URLValidator.validate_feed_url(feed_url)

        self.logger.info(f"Fetching feed: {url}")
        start_time = time.time()

        try:
            response = self.session.get(
                url, timeout=self.settings.limits.request_timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise FeedFetchError(
                f"Failed to fetch feed {url}: {e}", feed_source=url
            ) from e

        self.logger.debug(
            f"Feed fetched in {time.time() - start_time:.2f}s, "
            f"size: {len(response.content)} bytes"
        )

        return self.parse_feed(
            response.content,
            source=url,
            response_headers=dict(response.headers),
        )

    def load_feed(self, path: str) -> ParsedFeed:
        """Read and parse a feed from a local file."""
        self.logger.info(f"Loading feed file: {path}")
        try:
            content = Path(path).read_bytes()
        except OSError as e:
            raise FeedFetchError(
                f"Failed to read feed file {path}: {e}",
                feed_source=path,
                error_code=ErrorCode.FEED_NOT_FOUND,
                recoverable=False,
            ) from e

        return self.parse_feed(content, source=path)

    def parse_feed(
        self,
        content: bytes,
        source: Optional[str] = None,
        response_headers: Optional[dict] = None,
    ) -> ParsedFeed:
        """
        Parse raw feed content.

        Raises:
            FeedError: If feedparser recognises no feed at all
        """
        parsed = feedparser.parse(content, response_headers=response_headers)

        if parsed.bozo:
            if not parsed.get("version") and not parsed.entries:
                raise FeedError(
                    f"Could not parse feed: {parsed.get('bozo_exception')}",
                    feed_source=source,
                )
            # Many feeds have minor formatting issues
            self.logger.warning(
                f"Feed parsing warning for {source}: {parsed.get('bozo_exception')}"
            )

        metadata = self._extract_feed_metadata(parsed.feed, parsed.get("version", ""))
        items = [self._extract_toot(entry) for entry in parsed.entries]

        self.logger.info(
            f"Parsed {len(items)} items from {source or 'feed'} ({metadata.feed_type or 'unknown'})"
        )
        return ParsedFeed(metadata=metadata, items=items)

    def _extract_feed_metadata(self, feed_data: Any, version: str) -> FeedMetadata:
        """Extract channel metadata. ``updated`` holds the RSS lastBuildDate."""
        last_build_date = None
        # Membership test avoids feedparser's fallback from updated to pubDate
        if "updated_parsed" in feed_data:
            last_build_date = _struct_time_to_datetime(feed_data["updated_parsed"])

        return FeedMetadata(
            feed_type=version or "",
            title=feed_data.get("title"),
            link=feed_data.get("link"),
            last_build_date=last_build_date,
        )

    def _extract_toot(self, entry: Any) -> ParsedToot:
        """Extract item fields. RSS <guid> is exposed by feedparser as ``id``."""
        categories = []
        for tag in entry.get("tags") or []:
            term = tag.get("term") if isinstance(tag, dict) else str(tag)
            if term and term.strip():
                categories.append(term.strip())

        return ParsedToot(
            guid=_text_or_none(entry.get("id")),
            link=_item_link(entry),
            published=_struct_time_to_datetime(entry.get("published_parsed")),
            description=_text_or_none(entry.get("description")),
            categories=categories,
        )
