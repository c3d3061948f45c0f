"""Structured key=value logging for dungeon and session events.

Each call emits one line built from keyword fields, either as
``level=info ts=... event=level_generated rooms=42`` or, with
``DELVE_LOG_JSON=1``, as a compact JSON object. The threshold comes from
``DELVE_LOG_LEVEL`` (debug|info|warn|error) and is read on every call so a
test or a `.env` file can change it after import.

Usage:
    from delve.logging_utils import get_logger
    log = get_logger("delve.generator")
    log.info(event="level_generated", rooms=42)

    session_log = log.bind(session="abc123")
    session_log.info(event="moved", room="2,3")

Reserved keys: level, ts, logger. A field passed under a reserved name is
written as ``field_<name>`` instead.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
_TRUTHY = ("1", "true", "TRUE", "yes", "on")
_RESERVED = ("level", "ts", "logger")


def current_level() -> int:
    return LEVELS.get(os.getenv("DELVE_LOG_LEVEL", "info").lower(), 20)


def json_mode() -> bool:
    return os.getenv("DELVE_LOG_JSON", "0") in _TRUTHY


def _format(lvl: str, fields: dict, /) -> str:
    if json_mode():
        rec = {"level": lvl, "ts": int(time.time())}
        rec.update((k, v) for k, v in fields.items() if v is not None)
        return json.dumps(rec, separators=(",", ":"), default=str)
    parts = [f"level={lvl}", f"ts={int(time.time())}"]
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, bool):
            parts.append(f"{k}={str(v).lower()}")
        elif isinstance(v, (int, float)):
            parts.append(f"{k}={v}")
        else:
            parts.append(f"{k}={str(v).replace(' ', '_')}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None, context: dict | None = None):
        self.name = name or "delve"
        self.context = dict(context or {})

    def bind(self, /, **fields) -> "_Logger":
        """Return a logger that adds `fields` to every record."""
        merged = dict(self.context)
        merged.update(fields)
        return _Logger(self.name, merged)

    def _log(self, lvl: str, fields: dict):
        if LEVELS[lvl] < current_level():
            return
        record = {"logger": self.name}
        for k, v in {**self.context, **fields}.items():
            record[f"field_{k}" if k in _RESERVED else k] = v
        stream = sys.stderr if lvl == "error" else sys.stdout
        print(_format(lvl, record), file=stream)

    def debug(self, /, **fields):
        self._log("debug", fields)

    def info(self, /, **fields):
        self._log("info", fields)

    def warn(self, /, **fields):
        self._log("warn", fields)

    def error(self, /, **fields):
        self._log("error", fields)


_LOGGER_CACHE: dict[str, _Logger] = {}


def get_logger(name: str) -> _Logger:
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("delve")
