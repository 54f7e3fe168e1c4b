"""
TarPit Storage Layer
====================

Repository pattern implementations for data access abstraction.

This module provides:
- Toot repository for toots, categories and their links
- Trace repository for the per-run audit log
"""

from .toot_repository import TootRepository
from .trace_repository import TraceRepository

__all__ = [
    "TootRepository",
    "TraceRepository",
]
