"""
Parsing of free-text replies from the remote reasoning service.

Step delta, in priority order:
1. A structured marker line:  @{"step_delta": 2}
2. The first signed integer in the reply text
3. Directional keywords: skip/next -> +1, back/previous -> -1,
   stay/current -> 0
4. 0
"""

from __future__ import annotations

import json
import re

from constants import MAX_REPLY_SENTENCES, STEP_DELTA_MARKER


_SIGNED_INT = re.compile(r"[+-]?\d+")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def split_marker(reply: str) -> tuple[str, int | None]:
    """
    Separate the spoken text from a trailing marker line.

    Returns (text_without_marker, step_delta or None). A malformed marker
    is dropped from the text and treated as absent.
    """
    index = reply.rfind(STEP_DELTA_MARKER + "{")
    if index < 0:
        return reply.strip(), None

    text, marker = reply[:index].strip(), reply[index + len(STEP_DELTA_MARKER):]
    try:
        data = json.loads(marker.strip())
        delta = data["step_delta"]
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValueError("step_delta must be an integer")
    except (ValueError, KeyError, TypeError):
        return text, None
    return text, delta


def scan_step_delta(reply: str) -> int:
    """Unstructured scan: first signed integer, else directional keywords."""
    match = _SIGNED_INT.search(reply)
    if match:
        return int(match.group(0))

    lowered = reply.lower()
    if "skip" in lowered or "next" in lowered:
        return 1
    if "back" in lowered or "previous" in lowered:
        return -1
    return 0


def truncate_sentences(text: str, limit: int = MAX_REPLY_SENTENCES) -> str:
    """Keep at most `limit` sentences, joined by single spaces."""
    parts = [p for p in _SENTENCE_BREAK.split(text.strip()) if p]
    return " ".join(parts[:limit])


def parse_reply(reply: str) -> tuple[str, int]:
    """Return (spoken_text, step_delta) for a raw remote reply."""
    text, delta = split_marker(reply)
    if delta is None:
        delta = scan_step_delta(text)
    return truncate_sentences(text), delta
