"""
Per-engine run counters.

Every capture turn, utterance and resolution cycle gets a fresh number.
Events from the capture engine, the playback engine and the resolver
echo the number they were started with; the reducer compares it with the
value held here and drops anything older.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunIds:
    """
    Latest run number per engine; 0 until that engine first starts.

    Only the reducer replaces this object. Numbers only ever go up.
    """

    capture: int = 0
    playback: int = 0
    resolver: int = 0
