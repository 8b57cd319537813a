"""Repository package for database access."""

from .index_sessions import SqliteIndexSessionRepository

__all__ = [
    "SqliteIndexSessionRepository",
]
