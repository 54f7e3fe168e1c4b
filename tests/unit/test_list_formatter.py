"""
Unit Tests for List Formatter
=============================

Tests for HTML stripping, truncation and listing output.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from tarpit.delivery.list_formatter import (
    ListFormatter,
    resolve_timezone,
    strip_html,
    truncate,
)
from tarpit.storage.toot_repository import TootRepository
from tarpit.utils.exceptions import ValidationError


class TestStripHtml:
    """HTML removal and entity decoding."""

    @pytest.mark.parametrize(
        "html, expected",
        [
            ("<p>Hello <strong>world</strong></p>", "Hello world"),
            ("<p>Hello&nbsp;world</p>", "Hello world"),
            ("<p>&quot;quoted&quot;</p>", '"quoted"'),
            ("<p>Tom &amp; Jerry</p>", "Tom & Jerry"),
            ("<p>&lt;test&gt;</p>", "<test>"),
            ("<p>it&#39;s</p>", "it's"),
            ("plain text", "plain text"),
            ("", ""),
        ],
    )
    def test_examples(self, html, expected):
        assert strip_html(html) == expected

    def test_keeps_link_text(self):
        html = '<p>Reading about <a href="https://example.social/tags/python">#python</a> today</p>'
        assert strip_html(html) == "Reading about #python today"

    def test_paragraphs_and_breaks_are_separated(self):
        assert strip_html("<p>one</p><p>two</p>") == "one two"
        assert strip_html("<p>line<br>next<br/>last</p>") == "line next last"

    def test_hashtag_stays_joined(self):
        html = (
            '<p>Now on <a href="https://example.social/tags/python" class="mention hashtag">'
            "#<span>python</span></a></p>"
        )
        assert strip_html(html) == "Now on #python"

    def test_collapses_whitespace(self):
        assert strip_html("<p>one\n   two</p>\n<p> three </p>") == "one two three"


class TestTruncate:
    def test_long_text(self):
        text = "a" * 150
        result = truncate(text, 100)

        assert len(result) == 100
        assert result.endswith("...")
        assert result[:97] == text[:97]

    def test_short_text_unchanged(self):
        assert truncate("a" * 10, 100) == "a" * 10

    def test_exact_fit_unchanged(self):
        assert truncate("a" * 100, 100) == "a" * 100


class TestResolveTimezone:
    def test_known_zone(self):
        assert resolve_timezone("Europe/Berlin") == ZoneInfo("Europe/Berlin")

    def test_unknown_zone(self):
        with pytest.raises(ValidationError):
            resolve_timezone("Not/AZone")


class TestListFormatter:
    """Listing output against a real database."""

    @pytest.fixture
    def formatter(self, db_connection):
        return ListFormatter(db_connection)

    @pytest.fixture
    def repo(self, db_connection):
        return TootRepository(db_connection)

    def test_formatting(self, formatter, repo, make_toot):
        repo.insert_toot(make_toot(
            1,
            pub_date=datetime.fromtimestamp(1000000000, tz=timezone.utc),
            description="<p>First toot with <strong>HTML</strong> tags</p>",
        ))
        repo.insert_toot(make_toot(
            2,
            pub_date=datetime.fromtimestamp(1500000000, tz=timezone.utc),
            description="<p>Second toot with &amp; entities &lt;test&gt;</p>",
        ))
        long_text = (
            "A very long third toot that should be truncated because it exceeds the "
            "maximum character limit we have set for display purposes in our "
            "command-line application interface"
        )
        repo.insert_toot(make_toot(
            3,
            pub_date=datetime.fromtimestamp(1700000000, tz=timezone.utc),
            description=f"<p>{long_text}</p>",
        ))

        output = formatter.format_output(tz=ZoneInfo("UTC"))

        assert output == [
            f"2023-11-14 22:13:20 UTC  {long_text[:97]}...",
            "2017-07-14 02:40:00 UTC  Second toot with & entities <test>",
            "2001-09-09 01:46:40 UTC  First toot with HTML tags",
        ]

    def test_limit(self, formatter, repo, make_toot):
        for n in range(1, 6):
            repo.insert_toot(make_toot(
                n, pub_date=datetime.fromtimestamp(1000000000 + n * 100000000, tz=timezone.utc)
            ))

        output = formatter.format_output(limit=2, tz=ZoneInfo("UTC"))

        assert len(output) == 2
        assert output[0].endswith("Toot number 5")
        assert output[1].endswith("Toot number 4")

    def test_empty_database(self, formatter):
        assert formatter.format_output() == []

    def test_timezone(self, formatter, repo, make_toot):
        repo.insert_toot(make_toot(1, pub_date=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)))

        output = formatter.format_output(tz=ZoneInfo("Europe/Berlin"))

        assert output == ["2024-01-15 13:00:00 CET  Toot number 1"]

    def test_custom_width(self, db_connection, repo, make_toot):
        repo.insert_toot(make_toot(1, description="<p>" + "b" * 50 + "</p>"))

        output = ListFormatter(db_connection, max_length=20).format_output()

        assert output[0].endswith("b" * 17 + "...")
