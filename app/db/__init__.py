"""
Database Module
===============

Provides database session management and base model.

The named-call gateway lives in ``app.db.gateway``; it depends on the
models and is therefore not re-exported here.
"""

from app.db.base import Base
from app.db.session import close_db, get_db, init_db

__all__ = ["Base", "close_db", "get_db", "init_db"]
