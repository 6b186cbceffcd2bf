"""Attendance sync: ingest form responses and assign deduplicated person IDs."""

__version__ = "0.1.0"
