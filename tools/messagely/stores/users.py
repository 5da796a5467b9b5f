"""User store: registration, bcrypt authentication and message lookups."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import bcrypt

from ..db import Database, now_iso, parse_timestamp
from ..errors import NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_WORK_FACTOR = 12

# bcrypt only reads the first 72 bytes of a password; bcrypt>=5 rejects longer input
BCRYPT_MAX_BYTES = 72

# One dummy hash per work factor, checked when the username is unknown
_DUMMY_HASHES: Dict[int, str] = {}


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def _dummy_hash(work_factor: int) -> str:
    if work_factor not in _DUMMY_HASHES:
        _DUMMY_HASHES[work_factor] = bcrypt.hashpw(
            b"dummy", bcrypt.gensalt(rounds=work_factor)
        ).decode("utf-8")
    return _DUMMY_HASHES[work_factor]


def _public_user(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "username": row["username"],
        "first_name": row["first_name"],
        "last_name": row["last_name"],
        "phone": row["phone"],
    }


class UserStore:
    """Stateless operations over the ``users`` and ``messages`` tables.

    Args:
        db: Database handle every query is issued against.
        work_factor: bcrypt log2 rounds used when hashing new passwords.
    """

    def __init__(self, db: Database, work_factor: int = DEFAULT_WORK_FACTOR) -> None:
        self.db = db
        self.work_factor = work_factor

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(
            _password_bytes(password), bcrypt.gensalt(rounds=self.work_factor)
        ).decode("utf-8")

    def _check_password(self, password: str, stored: str | None) -> bool:
        if stored is None:
            bcrypt.checkpw(
                _password_bytes(password), _dummy_hash(self.work_factor).encode("utf-8")
            )
            return False
        return bcrypt.checkpw(_password_bytes(password), stored.encode("utf-8"))

    async def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str,
    ) -> Dict[str, Any]:
        """Register a new user.

        Returns {username, password, first_name, last_name, phone} where
        password is the bcrypt hash. A duplicate username raises the
        database's IntegrityError unchanged.
        """
        hashed = await asyncio.to_thread(self._hash_password, password)
        now = now_iso()
        result = await self.db.query(
            "INSERT INTO users (username, password, first_name, last_name, phone, join_at, last_login_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?) "
            "RETURNING username, password, first_name, last_name, phone",
            [username, hashed, first_name, last_name, phone, now, now],
        )
        logger.debug(f"Registered user {username}")
        return result.rows[0]

    async def authenticate(self, username: str, password: str) -> bool:
        """Is this username/password valid?

        An unknown username returns False after checking against a dummy
        hash, so callers cannot tell it apart from a wrong password.
        Passwords longer than 72 bytes are compared on their first 72 bytes.
        """
        result = await self.db.query(
            "SELECT password FROM users WHERE username = ?", [username]
        )
        user = result.first()
        stored = user["password"] if user else None
        return await asyncio.to_thread(self._check_password, password, stored)

    async def update_login_timestamp(self, username: str) -> Dict[str, Any]:
        """Set last_login_at to now. Returns {username, last_login_at}."""
        result = await self.db.query(
            "UPDATE users SET last_login_at = ? WHERE username = ? "
            "RETURNING username, last_login_at",
            [now_iso(), username],
        )
        row = result.first()
        if row is None:
            logger.info(f"Login timestamp update for unknown user {username}")
            raise NotFoundError(f"Username not found: {username}")
        return {
            "username": row["username"],
            "last_login_at": parse_timestamp(row["last_login_at"]),
        }

    async def all(self) -> List[Dict[str, Any]]:
        """Basic info on all users: [{username, first_name, last_name, phone}, ...]"""
        result = await self.db.query(
            "SELECT username, first_name, last_name, phone FROM users"
        )
        return [_public_user(row) for row in result.rows]

    async def get(self, username: str) -> Dict[str, Any]:
        """Get a user by username.

        Returns {username, first_name, last_name, phone, join_at, last_login_at}.
        """
        result = await self.db.query(
            "SELECT username, first_name, last_name, phone, join_at, last_login_at "
            "FROM users WHERE username = ?",
            [username],
        )
        row = result.first()
        if row is None:
            logger.info(f"Lookup for unknown user {username}")
            raise NotFoundError(f"Username not found: {username}")
        user = _public_user(row)
        user["join_at"] = parse_timestamp(row["join_at"])
        user["last_login_at"] = parse_timestamp(row["last_login_at"])
        return user

    async def messages_from(self, username: str) -> List[Dict[str, Any]]:
        """Messages sent by this user.

        Returns [{id, to_user, body, sent_at, read_at}] where to_user is
        {username, first_name, last_name, phone}. Raises NotFoundError when
        nothing matches, whether or not the user exists.
        """
        result = await self.db.query(
            "SELECT m.id, u.username, u.first_name, u.last_name, u.phone, "
            "m.body, m.sent_at, m.read_at "
            "FROM messages AS m "
            "JOIN users AS u ON m.to_username = u.username "
            "WHERE m.from_username = ?",
            [username],
        )
        if not result.rowcount:
            logger.info(f"No messages from {username}")
            raise NotFoundError(f"No messages from user '{username}' found")

        return [
            {
                "id": m["id"],
                "to_user": _public_user(m),
                "body": m["body"],
                "sent_at": parse_timestamp(m["sent_at"]),
                "read_at": parse_timestamp(m["read_at"]),
            }
            for m in result.rows
        ]

    async def messages_to(self, username: str) -> List[Dict[str, Any]]:
        """Messages received by this user.

        Returns [{id, from_user, body, sent_at, read_at}] where from_user is
        {username, first_name, last_name, phone}.
        """
        result = await self.db.query(
            "SELECT m.id, u.username, u.first_name, u.last_name, u.phone, "
            "m.body, m.sent_at, m.read_at "
            "FROM messages AS m "
            "JOIN users AS u ON m.from_username = u.username "
            "WHERE m.to_username = ?",
            [username],
        )
        if not result.rowcount:
            logger.info(f"No messages to {username}")
            raise NotFoundError(f"No messages to user '{username}' found")

        return [
            {
                "id": m["id"],
                "from_user": _public_user(m),
                "body": m["body"],
                "sent_at": parse_timestamp(m["sent_at"]),
                "read_at": parse_timestamp(m["read_at"]),
            }
            for m in result.rows
        ]
