"""Engines whose callbacks are tagged with a run id."""

from __future__ import annotations

from enum import Enum


class Service(str, Enum):
    """
    Sources of ServiceEvents.

    The value is also used, lowercased, as the `capability` field of
    CAPABILITY client messages.
    """

    CAPTURE = "CAPTURE"
    PLAYBACK = "PLAYBACK"
    RESOLVER = "RESOLVER"
