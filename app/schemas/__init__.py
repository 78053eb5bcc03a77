"""
Pydantic Schemas
================

Request/response schemas for API validation.
"""

from app.schemas.common import ErrorDetail, ErrorResponse

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
]
