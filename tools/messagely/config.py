"""Configuration loading: JSON file with environment overrides.

Example ``.messagely/config.json``::

    {
        "db_path": ".messagely/messagely.db",
        "bcrypt_work_factor": 12,
        "event_log": ".messagely/events.jsonl"
    }
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".messagely/config.json"

DEFAULTS: dict[str, Any] = {
    "db_path": ".messagely/messagely.db",
    "bcrypt_work_factor": 12,
    "event_log": ".messagely/events.jsonl",
}

ENV_OVERRIDES = {
    "MESSAGELY_DB_PATH": "db_path",
    "MESSAGELY_BCRYPT_WORK_FACTOR": "bcrypt_work_factor",
    "MESSAGELY_EVENT_LOG": "event_log",
}

# bcrypt.gensalt accepts 4..31 log rounds
MIN_WORK_FACTOR = 4
MAX_WORK_FACTOR = 31


def load_config(
    config_path: str = DEFAULT_CONFIG_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """Load configuration from a JSON file, then apply environment overrides.

    A missing file yields the defaults. Unparseable JSON, a non-object
    document or an out-of-range work factor raise ConfigError.
    """
    config = dict(DEFAULTS)

    path = Path(config_path)
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a JSON object")
        config.update(data)
    else:
        logger.debug(f"Config not found at {path}, using defaults")

    env = os.environ if environ is None else environ
    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            config[key] = env[var]

    try:
        work_factor = int(config["bcrypt_work_factor"])
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"bcrypt_work_factor must be an integer, got {config['bcrypt_work_factor']!r}"
        ) from e
    if not MIN_WORK_FACTOR <= work_factor <= MAX_WORK_FACTOR:
        raise ConfigError(
            f"bcrypt_work_factor must be between {MIN_WORK_FACTOR} and {MAX_WORK_FACTOR}"
        )
    config["bcrypt_work_factor"] = work_factor

    return config
