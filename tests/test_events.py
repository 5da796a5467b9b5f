#!/usr/bin/env python3

import importlib
import sys
from pathlib import Path


sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

events = importlib.import_module("messagely.events")


def test_log_event_writes_jsonl(tmp_path):
    path = tmp_path / "logs" / "events.jsonl"

    events.log_event("login_success", path=path, component="manage", username="alice")
    events.log_event("login_failed", path=path, component="manage", username="bob")

    payloads = events.read_events(path)
    assert [p["event_type"] for p in payloads] == ["login_success", "login_failed"]
    assert payloads[0]["username"] == "alice"
    assert payloads[0]["component"] == "manage"
    assert "timestamp" in payloads[0]


def test_read_events_missing_file(tmp_path):
    assert events.read_events(tmp_path / "none.jsonl") == []


def test_log_event_ignores_unwritable_path(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    good = tmp_path / "events.jsonl"
    events.log_event("login_success", path=good, username="bob")

    events.log_event("user_registered", path=blocker / "events.jsonl", username="alice")

    assert blocker.is_file()
    assert blocker.read_text() == ""
    assert not (blocker / "events.jsonl").exists()
    assert [e["username"] for e in events.read_events(good)] == ["bob"]
