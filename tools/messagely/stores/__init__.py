"""
Messagely stores: data access for users and messages.

Each store wraps an explicitly passed ``Database`` handle; no store keeps
state of its own between calls.

Usage:
    from messagely.db import Database
    from messagely.stores import UserStore, MessageStore

    db = Database(".messagely/messagely.db")
    users = UserStore(db, work_factor=12)
    await users.register("alice", "secret1", "Alice", "A", "111")
    await users.authenticate("alice", "secret1")  # True
"""

from .messages import MessageStore
from .users import UserStore

__all__ = ["UserStore", "MessageStore"]
