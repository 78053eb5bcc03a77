"""
Validators
==========

Common validation utilities for values that arrive outside a
request body (headers, query strings).
"""

from datetime import date
from typing import Optional

from app.core.errors import ValidationError
from app.db.base import MAX_ID


def parse_user_id(value: Optional[str], field_name: str = "userId") -> int:
    """
    Parse a user id supplied as text.

    Args:
        value: Raw header or query value
        field_name: Field name for error message

    Returns:
        The id as a positive integer

    Raises:
        ValidationError: If missing, non-numeric or out of range
    """
    if value is None or not value.strip():
        raise ValidationError(
            message="User ID is required",
            field=field_name,
        )

    try:
        user_id = int(value.strip())
    except ValueError:
        raise ValidationError(
            message="User ID must be a positive integer",
            field=field_name,
        )

    if not 0 < user_id <= MAX_ID:
        raise ValidationError(
            message="User ID must be a positive integer",
            field=field_name,
        )

    return user_id


def parse_iso_date(value: Optional[str], field_name: str = "date") -> Optional[date]:
    """
    Parse an optional ``YYYY-MM-DD`` date.

    Args:
        value: Raw date string, or None
        field_name: Field name for error message

    Returns:
        Parsed date, or None when no value was given

    Raises:
        ValidationError: If the value is not a calendar date
    """
    if value is None or value == "":
        return None

    try:
        if len(value) != 10:
            raise ValueError(value)
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(
            message="Invalid date format. Use YYYY-MM-DD.",
            field=field_name,
        )
