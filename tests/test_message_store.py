#!/usr/bin/env python3
"""Unit tests for MessageStore."""

import importlib
import sqlite3
import sys
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

Database = importlib.import_module("messagely.db").Database
NotFoundError = importlib.import_module("messagely.errors").NotFoundError
_stores = importlib.import_module("messagely.stores")
UserStore = _stores.UserStore
MessageStore = _stores.MessageStore


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def users(db):
    return UserStore(db, work_factor=4)


@pytest.fixture
def messages(db):
    return MessageStore(db)


async def _seed(users):
    await users.register("alice", "secret1", "Alice", "A", "111")
    await users.register("bob", "secret2", "Bob", "B", "222")


@pytest.mark.asyncio
async def test_create_assigns_id_and_sent_at(users, messages):
    await _seed(users)

    first = await messages.create("alice", "bob", "hello")
    second = await messages.create("bob", "alice", "hi back")

    assert first["from_username"] == "alice"
    assert first["to_username"] == "bob"
    assert first["body"] == "hello"
    assert isinstance(first["sent_at"], datetime)
    assert second["id"] > first["id"]


@pytest.mark.asyncio
async def test_create_requires_existing_users(users, messages):
    await _seed(users)

    with pytest.raises(sqlite3.IntegrityError):
        await messages.create("alice", "ghost", "anyone there?")


@pytest.mark.asyncio
async def test_get_includes_both_users(users, messages):
    await _seed(users)
    sent = await messages.create("alice", "bob", "hello")

    msg = await messages.get(sent["id"])

    assert msg["id"] == sent["id"]
    assert msg["body"] == "hello"
    assert msg["read_at"] is None
    assert msg["from_user"] == {
        "username": "alice",
        "first_name": "Alice",
        "last_name": "A",
        "phone": "111",
    }
    assert msg["to_user"]["username"] == "bob"


@pytest.mark.asyncio
async def test_get_unknown(messages):
    with pytest.raises(NotFoundError) as exc_info:
        await messages.get(42)

    assert exc_info.value.status == 404
    assert exc_info.value.message == "No such message: 42"


@pytest.mark.asyncio
async def test_mark_read(users, messages):
    await _seed(users)
    sent = await messages.create("alice", "bob", "hello")

    marked = await messages.mark_read(sent["id"])

    assert marked["id"] == sent["id"]
    assert marked["read_at"] >= sent["sent_at"]
    assert (await messages.get(sent["id"]))["read_at"] == marked["read_at"]


@pytest.mark.asyncio
async def test_mark_read_unknown(messages):
    with pytest.raises(NotFoundError, match="No such message: 7"):
        await messages.mark_read(7)
