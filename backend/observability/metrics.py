"""
Timing helpers for observability.

- Durations use monotonic time; ts_ms uses wall-clock time
- One metric = one log event, never aggregated
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event, now_ms


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Measure the duration of a block and emit one METRIC_TIMER event.

    The yielded dict is merged into the event details, so callers can
    record the outcome of the block:

        with timed("remote_resolution", session_id=sid) as extra:
            reply = await client.complete(...)
            extra["reply_len"] = len(reply)

    The metric is emitted even when the block raises.
    """
    extra: dict[str, Any] = dict(details or {})
    start_ns = time.monotonic_ns()
    try:
        yield extra
    finally:
        log_event({
            "ts_ms": now_ms(),
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": (time.monotonic_ns() - start_ns) // 1_000_000,
            "session_id": session_id,
            "details": extra,
        })
