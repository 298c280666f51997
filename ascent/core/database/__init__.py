"""
Database subsystem for Ascent.

Provides the async SQLAlchemy engine and session management, and exports
ORM base classes and mixins for model definitions.
"""

from ascent.core.database.base import (
    Base,
    IdMixin,
    TimestampMixin,
    utc_now,
)
from ascent.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "utc_now",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
