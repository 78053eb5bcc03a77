"""
Utilities Module
================

Helper functions and utility classes.
"""

from app.utils.helpers import format_date, format_timestamp

__all__ = ["format_date", "format_timestamp"]
