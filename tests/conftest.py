"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and sample feeds for TarPit tests.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))


SAMPLE_RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:webfeeds="http://webfeeds.org/rss/1.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Test User</title>
    <description>Public posts from @test@example.social</description>
    <link>https://example.social/@test</link>
    <lastBuildDate>Sat, 07 Sep 2024 10:00:00 +0000</lastBuildDate>
    <item>
      <guid isPermaLink="true">https://example.social/@test/3</guid>
      <link>https://example.social/@test/3</link>
      <pubDate>Fri, 06 Sep 2024 18:30:00 +0000</pubDate>
      <description>&lt;p&gt;Third toot about &lt;a href="https://example.social/tags/python"&gt;#python&lt;/a&gt;&lt;/p&gt;</description>
      <category>python</category>
      <category>sqlite</category>
    </item>
    <item>
      <guid isPermaLink="true">https://example.social/@test/2</guid>
      <link>https://example.social/@test/2</link>
      <pubDate>Thu, 05 Sep 2024 12:00:00 +0000</pubDate>
      <description>&lt;p&gt;Second toot&lt;/p&gt;</description>
      <category>python</category>
    </item>
    <item>
      <guid isPermaLink="true">https://example.social/@test/1</guid>
      <link>https://example.social/@test/1</link>
      <pubDate>Wed, 04 Sep 2024 08:15:00 +0000</pubDate>
      <description>&lt;p&gt;First toot&lt;/p&gt;</description>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <id>https://example.com/feed</id>
  <updated>2024-09-07T00:00:01Z</updated>
  <entry>
    <title>Atom entry</title>
    <link href="https://example.com/atom-entry"/>
    <id>https://example.com/atom-entry</id>
    <updated>2024-09-05T12:00:00Z</updated>
    <published>2024-09-05T12:00:00Z</published>
    <summary>An Atom summary</summary>
  </entry>
</feed>"""

# One complete item, one without a link, one without a publication date.
INCOMPLETE_RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test User</title>
    <link>https://example.social/@test</link>
    <description>Public posts</description>
    <item>
      <guid isPermaLink="true">https://example.social/@test/10</guid>
      <link>https://example.social/@test/10</link>
      <pubDate>Fri, 06 Sep 2024 18:30:00 +0000</pubDate>
      <description>&lt;p&gt;Complete&lt;/p&gt;</description>
    </item>
    <item>
      <guid isPermaLink="true">https://example.social/@test/11</guid>
      <pubDate>Fri, 06 Sep 2024 19:30:00 +0000</pubDate>
      <description>&lt;p&gt;No link&lt;/p&gt;</description>
    </item>
    <item>
      <guid isPermaLink="true">https://example.social/@test/12</guid>
      <link>https://example.social/@test/12</link>
      <description>&lt;p&gt;No date&lt;/p&gt;</description>
    </item>
  </channel>
</rss>"""


@pytest.fixture(autouse=True)
def reset_tarpit_logger():
    """Drop handlers the CLI attaches so tests never log to closed streams."""
    yield
    tarpit_logger = logging.getLogger("tarpit")
    for handler in list(tarpit_logger.handlers):
        tarpit_logger.removeHandler(handler)
        handler.close()
    tarpit_logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the user's config file and environment."""
    from tarpit.config import settings as settings_module

    monkeypatch.delenv("TAR_PIT_DB_PATH", raising=False)
    monkeypatch.setattr(
        settings_module, "DEFAULT_CONFIG_PATH", tmp_path / "no-such-config.yaml"
    )
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh database with the schema created."""
    from tarpit.database.schema import DatabaseSchema

    path = tmp_path / "tarpit_test.sqlite"
    DatabaseSchema(str(path)).create_tables()
    return str(path)


@pytest.fixture
def db_connection(db_path):
    """Create a database connection manager for testing."""
    from tarpit.database.connection import DatabaseConnection

    connection = DatabaseConnection(db_path)
    yield connection
    connection.close()


@pytest.fixture
def rss_file(tmp_path):
    """Sample Mastodon RSS feed written to disk."""
    path = tmp_path / "feed.rss"
    path.write_text(SAMPLE_RSS_FEED, encoding="utf-8")
    return str(path)


@pytest.fixture
def make_toot():
    """Factory for Toot models with sensible defaults."""
    from tarpit.database.models import Toot

    def _make(n: int, pub_date: datetime = None, description: str = None) -> Toot:
        return Toot(
            guid=f"https://example.social/@test/{n}",
            link=f"https://example.social/@test/{n}",
            pub_date=pub_date or datetime(2024, 9, 1, 12, 0, n % 60, tzinfo=timezone.utc),
            description=description or f"<p>Toot number {n}</p>",
        )

    return _make


@pytest.fixture
def rss_content():
    """Sample Mastodon RSS feed as raw bytes."""
    return SAMPLE_RSS_FEED.encode("utf-8")


@pytest.fixture
def atom_content():
    """Sample Atom feed as raw bytes."""
    return SAMPLE_ATOM_FEED.encode("utf-8")


@pytest.fixture
def incomplete_rss_content():
    """RSS feed where two of three items lack a required field."""
    return INCOMPLETE_RSS_FEED.encode("utf-8")
