"""Message store: send, fetch and mark messages as read."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..db import Database, now_iso, parse_timestamp
from ..errors import NotFoundError

logger = logging.getLogger(__name__)


class MessageStore:
    """Operations over the ``messages`` table.

    Args:
        db: Database handle every query is issued against.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create(self, from_username: str, to_username: str, body: str) -> Dict[str, Any]:
        """Send a message.

        Returns {id, from_username, to_username, body, sent_at}. Unknown
        usernames raise the database's IntegrityError (foreign key).
        """
        result = await self.db.query(
            "INSERT INTO messages (from_username, to_username, body, sent_at) "
            "VALUES (?, ?, ?, ?) "
            "RETURNING id, from_username, to_username, body, sent_at",
            [from_username, to_username, body, now_iso()],
        )
        msg = result.rows[0]
        msg["sent_at"] = parse_timestamp(msg["sent_at"])
        logger.debug(f"Message {msg['id']} sent {from_username} -> {to_username}")
        return msg

    async def get(self, message_id: int) -> Dict[str, Any]:
        """Get a message with both participants' public fields.

        Returns {id, body, sent_at, read_at, from_user, to_user}.
        """
        result = await self.db.query(
            "SELECT m.id, m.body, m.sent_at, m.read_at, "
            "f.username AS from_username, f.first_name AS from_first_name, "
            "f.last_name AS from_last_name, f.phone AS from_phone, "
            "t.username AS to_username, t.first_name AS to_first_name, "
            "t.last_name AS to_last_name, t.phone AS to_phone "
            "FROM messages AS m "
            "JOIN users AS f ON m.from_username = f.username "
            "JOIN users AS t ON m.to_username = t.username "
            "WHERE m.id = ?",
            [message_id],
        )
        m = result.first()
        if m is None:
            raise NotFoundError(f"No such message: {message_id}")

        return {
            "id": m["id"],
            "body": m["body"],
            "sent_at": parse_timestamp(m["sent_at"]),
            "read_at": parse_timestamp(m["read_at"]),
            "from_user": {
                "username": m["from_username"],
                "first_name": m["from_first_name"],
                "last_name": m["from_last_name"],
                "phone": m["from_phone"],
            },
            "to_user": {
                "username": m["to_username"],
                "first_name": m["to_first_name"],
                "last_name": m["to_last_name"],
                "phone": m["to_phone"],
            },
        }

    async def mark_read(self, message_id: int) -> Dict[str, Any]:
        """Set read_at to now. Returns {id, read_at}."""
        result = await self.db.query(
            "UPDATE messages SET read_at = ? WHERE id = ? RETURNING id, read_at",
            [now_iso(), message_id],
        )
        row = result.first()
        if row is None:
            raise NotFoundError(f"No such message: {message_id}")
        return {"id": row["id"], "read_at": parse_timestamp(row["read_at"])}
