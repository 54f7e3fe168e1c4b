"""
TarPit Ingestion Module
=======================

Feed loading and parsing: local files or URLs, parsed with feedparser
into item records for the ingestion pipeline.
"""
