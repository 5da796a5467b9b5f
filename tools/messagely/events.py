"""Append-only JSONL audit trail.

Each line records one account or message event (user_registered,
login_success, login_failed, message_sent, message_read) with a UTC
timestamp. Write failures are ignored so auditing never breaks a command.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

DEFAULT_EVENT_LOG = ".messagely/events.jsonl"


def log_event(event_type: str, path: str | Path = DEFAULT_EVENT_LOG, **details: Any) -> None:
    try:
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            **details,
        }
        with file_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=True, default=str) + "\n")
    except OSError:
        pass


def read_events(path: str | Path = DEFAULT_EVENT_LOG) -> list[dict[str, Any]]:
    file_path = Path(path)
    if not file_path.exists():
        return []
    with file_path.open(encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
