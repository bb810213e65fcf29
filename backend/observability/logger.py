"""
Structured event log.

Every component reports through log_event(): one compact JSON object per
stdout line, written immediately. Logging must never take a cooking
session down, so serialization failures are reported as a log line of
their own.
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Callable, Mapping


def _write_stdout(line: str) -> None:
    sys.stdout.write(f"{line}\n")
    sys.stdout.flush()


# Sink for finished lines; tests swap it for a list's append
_print: Callable[[str], None] = _write_stdout


def now_ms() -> int:
    """Wall-clock milliseconds for event timestamps."""
    return time.time_ns() // 1_000_000


def _encode(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def log_event(event: Mapping[str, Any]) -> None:
    """
    Emit one event.

    Callers pass the complete payload (event_type, session_id, ...). A
    payload holding values json cannot encode is replaced by a
    LOGGER_SERIALIZATION_ERROR event that keeps its repr.
    """
    try:
        line = _encode(event)
    except (TypeError, ValueError) as exc:
        line = _encode({
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(exc),
            "original_event_repr": repr(event),
        })

    _print(line)
