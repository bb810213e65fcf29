# pylint: disable=missing-module-docstring,missing-function-docstring
import json
from typing import Any

import pytest

from observability import logger
from observability.metrics import timed


def test_log_event_emits_valid_jsonl(captured_logs):
    payload: dict[str, Any] = {"event_type": "TEST", "value": 123, "note": "crème"}

    logger.log_event(payload)

    assert len(captured_logs) == 1
    assert "\n" not in captured_logs[0]
    assert json.loads(captured_logs[0]) == payload


def test_unserializable_payload_does_not_raise(captured_logs):
    logger.log_event({"ts_ms": 5, "event_type": "TEST", "bad": object()})

    decoded = json.loads(captured_logs[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 5
    assert "original_event_repr" in decoded


def test_timed_emits_one_metric_with_details(captured_logs):
    with timed("remote_resolution", session_id="sess_1") as extra:
        extra["outcome"] = "ok"

    decoded = json.loads(captured_logs[0])
    assert decoded["event_type"] == "METRIC_TIMER"
    assert decoded["metric"] == "remote_resolution"
    assert decoded["session_id"] == "sess_1"
    assert decoded["details"] == {"outcome": "ok"}
    assert decoded["value_ms"] >= 0


def test_timed_emits_even_when_block_raises(captured_logs):
    with pytest.raises(RuntimeError):
        with timed("failing_block"):
            raise RuntimeError("boom")

    assert len(captured_logs) == 1
    assert json.loads(captured_logs[0])["metric"] == "failing_block"
