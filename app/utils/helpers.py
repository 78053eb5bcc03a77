"""
Helper Functions
================

Common utility functions used across the application.
"""

from datetime import date, datetime, timezone


def format_timestamp(dt: datetime) -> str:
    """
    Format a timestamp as ISO 8601 with an explicit offset.

    Drivers that drop the zone (SQLite) hand back naive values; those
    are stored as UTC, so the offset is restored here.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def format_date(value: date) -> str:
    """Format a calendar date as YYYY-MM-DD."""
    return value.isoformat()
