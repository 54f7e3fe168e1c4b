"""
List Formatter
==============

Console rendering of stored toots for the ``list`` command.

Each toot becomes one line: the publication date in the requested timezone,
followed by the description with HTML removed and cut to the display width.
"""

import re
from datetime import timezone, tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bs4 import BeautifulSoup

from ..database.models import Toot
from ..database.connection import DatabaseConnection
from ..storage.toot_repository import TootRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ValidationError, ErrorCode

ELLIPSIS = "..."

ROW_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

_WHITESPACE_RE = re.compile(r"\s+")

# Tags that end a run of text; inline tags such as <a> and <span> join directly
BLOCK_TAGS = ["p", "div", "blockquote", "li", "ul", "ol", "pre", "h1", "h2", "h3", "h4", "h5", "h6"]


def strip_html(text: str) -> str:
    """Remove tags and decode entities, keeping the text content.

    Paragraphs and line breaks become spaces, non-breaking spaces become
    plain spaces and runs of whitespace collapse to a single space.
    """
    if not text:
        return ""

    soup = BeautifulSoup(text, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with(" ")
    for block in soup.find_all(BLOCK_TAGS):
        block.insert_after(" ")

    content = soup.get_text()
    content = content.replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", content).strip()


def truncate(text: str, max_length: int) -> str:
    """Cut text to ``max_length`` characters, ending in an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA timezone by name.

    Raises:
        ValidationError: If the name is not a known timezone
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(
            f"unknown timezone {name!r}",
            field_name="timezone",
            error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
        ) from e


class ListFormatter:
    """Formats stored toots as fixed-layout console rows."""

    def __init__(self, db_connection: DatabaseConnection, max_length: int = 100):
        """Initialize list formatter.

        Args:
            db_connection: Database connection manager
            max_length: Maximum width of the description column
        """
        self.repository = TootRepository(db_connection)
        self.max_length = max_length
        self.logger = get_logger_for_component("list_formatter")

    def format_row(self, toot: Toot, tz: tzinfo = timezone.utc) -> str:
        """Render one toot as ``<date> <tz>  <description>``."""
        published = toot.pub_date.astimezone(tz).strftime(ROW_DATE_FORMAT)
        description = truncate(strip_html(toot.description), self.max_length)
        return f"{published}  {description}"

    def format_output(
        self, limit: Optional[int] = None, tz: tzinfo = timezone.utc
    ) -> List[str]:
        """Render the most recent toots, newest first.

        Args:
            limit: Maximum number of rows; None renders every stored toot
            tz: Timezone for publication dates

        Returns:
            Formatted rows (empty when nothing is stored)
        """
        toots = self.repository.get_recent_toots(limit)
        self.logger.debug(f"Formatting {len(toots)} toots")
        return [self.format_row(toot, tz) for toot in toots]
