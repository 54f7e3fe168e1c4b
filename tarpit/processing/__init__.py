"""
TarPit Processing Module
========================

Ingestion pipeline that turns a parsed feed into stored toots and a trace row.
"""

from .pipeline import IngestionPipeline, IngestRunResult

__all__ = [
    "IngestionPipeline",
    "IngestRunResult",
]
