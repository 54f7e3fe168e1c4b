"""
TarPit - Mastodon Feed Archiver
===============================

Fetches a Mastodon account's RSS feed and keeps its toots in SQLite.

Main Components:
- Database: SQLite schema for toots, categories, their links and a run trace
- Configuration: YAML + environment variables with Pydantic validation
- Ingestion: RSS loading and parsing, deduplicated storage with run statistics
- Delivery: HTML-stripped, truncated console listing of stored toots
"""

__version__ = "0.0.1"
__author__ = "TarPit Development Team"
__description__ = "Mastodon RSS feed archiver"

# Core imports for easy access
from .config.settings import load_settings, resolve_db_path
from .database.connection import DatabaseConnection
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import TarPitError

__all__ = [
    "load_settings",
    "resolve_db_path",
    "DatabaseConnection",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "TarPitError",
]
