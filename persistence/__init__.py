# persistence/__init__.py
"""
Persistence layer.

Provides SQLite-backed storage for:
- Users (unique email index)
- Sessions (token-keyed, with expiry)
"""

from persistence.db import Database
from persistence.sessions import SQLiteSessionStore
from persistence.users import SQLiteUserRepository

__all__ = [
    "Database",
    "SQLiteSessionStore",
    "SQLiteUserRepository",
]
