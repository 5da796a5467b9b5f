#!/usr/bin/env python3
"""Unit tests for the async SQLite client."""

import asyncio
import importlib
import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

db_mod = importlib.import_module("messagely.db")
Database = db_mod.Database
QueryResult = db_mod.QueryResult

INSERT_USER = (
    "INSERT INTO users (username, password, first_name, last_name, phone, join_at, last_login_at) "
    "VALUES (?, 'x', 'F', 'L', '000', '2024-01-01T00:00:00+00:00', NULL)"
)


@pytest.fixture
def db():
    database = Database()
    yield database
    database.close()


def test_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "messagely.db"
    database = Database(str(path))
    try:
        assert path.exists()
    finally:
        database.close()


def test_query_result_first():
    assert QueryResult().first() is None
    assert QueryResult(rows=[{"a": 1}, {"a": 2}], rowcount=2).first() == {"a": 1}


@pytest.mark.asyncio
async def test_select_rows_are_dicts(db):
    await db.query(INSERT_USER, ["alice"])

    result = await db.query("SELECT username, phone FROM users WHERE username = ?", ["alice"])

    assert result.rows == [{"username": "alice", "phone": "000"}]
    assert result.rowcount == 1


@pytest.mark.asyncio
async def test_empty_select(db):
    result = await db.query("SELECT * FROM users")

    assert result.rows == []
    assert result.rowcount == 0


@pytest.mark.asyncio
async def test_update_rowcount(db):
    await db.query(INSERT_USER, ["alice"])
    await db.query(INSERT_USER, ["bob"])

    result = await db.query("UPDATE users SET phone = ?", ["999"])

    assert result.rows == []
    assert result.rowcount == 2


@pytest.mark.asyncio
async def test_returning_counts_rows(db):
    result = await db.query(INSERT_USER + " RETURNING username", ["carol"])

    assert result.rows == [{"username": "carol"}]
    assert result.rowcount == 1


@pytest.mark.asyncio
async def test_failed_statement_rolls_back_and_propagates(db):
    await db.query(INSERT_USER, ["alice"])

    with pytest.raises(sqlite3.IntegrityError):
        await db.query(INSERT_USER, ["alice"])

    result = await db.query("SELECT username FROM users")
    assert result.rowcount == 1


@pytest.mark.asyncio
async def test_foreign_keys_enforced(db):
    with pytest.raises(sqlite3.IntegrityError):
        await db.query(
            "INSERT INTO messages (from_username, to_username, body, sent_at) VALUES (?, ?, ?, ?)",
            ["ghost", "nobody", "hi", "2024-01-01T00:00:00+00:00"],
        )


@pytest.mark.asyncio
async def test_concurrent_queries(db):
    await asyncio.gather(*(db.query(INSERT_USER, [f"user{i}"]) for i in range(10)))

    result = await db.query("SELECT username FROM users")
    assert result.rowcount == 10


@pytest.mark.asyncio
async def test_persists_across_connections(tmp_path):
    path = str(tmp_path / "messagely.db")
    first = Database(path)
    await first.query(INSERT_USER, ["alice"])
    first.close()

    second = Database(path)
    try:
        result = await second.query("SELECT username FROM users")
        assert result.rows == [{"username": "alice"}]
    finally:
        second.close()


def test_parse_timestamp():
    assert db_mod.parse_timestamp(None) is None
    ts = db_mod.parse_timestamp(db_mod.now_iso())
    assert ts.tzinfo is not None
