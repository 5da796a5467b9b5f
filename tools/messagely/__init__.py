"""
Messagely: data access for a two-entity messaging application.

Users register, authenticate with bcrypt-hashed passwords and exchange
messages. Every operation is a coroutine issuing one parameterized query
against an explicitly passed Database handle.

Components:
    - Database: SQLite client with ``await query(sql, params)``
    - UserStore: register, authenticate, login timestamps, user and message lookups
    - MessageStore: send, fetch and mark messages read
    - AppError / NotFoundError: error signals carrying an HTTP-style status

Usage:
    from messagely import Database, UserStore

    db = Database(".messagely/messagely.db")
    users = UserStore(db)
    await users.register("alice", "secret1", "Alice", "A", "111")
    await users.get("alice")
"""

__version__ = "0.1.0"

from .db import Database, QueryResult
from .errors import AppError, ConfigError, NotFoundError
from .stores import MessageStore, UserStore

__all__ = [
    "Database",
    "QueryResult",
    "UserStore",
    "MessageStore",
    "AppError",
    "NotFoundError",
    "ConfigError",
]
