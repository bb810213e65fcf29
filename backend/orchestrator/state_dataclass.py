"""
Everything the interaction reducer reads or writes for one cooking session.

The recipe cursor and turn history are not here: they are imperative
collaborators owned by VoiceSession and reached through commands.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from orchestrator.enums.state import State
from orchestrator.run_ids import RunIds


@dataclass(frozen=True)
class CoordinatorState:
    """Immutable snapshot of all coordinator-owned state."""

    # ------------------------------------------------------------------
    # Control state
    # ------------------------------------------------------------------
    state: State = State.IDLE

    # User's standing intent to keep capturing. Independent of whether
    # the capture engine is running at this instant.
    desired_listening: bool = False

    muted: bool = False

    # ------------------------------------------------------------------
    # Platform capabilities
    # ------------------------------------------------------------------
    capture_supported: bool = True
    playback_supported: bool = True

    # Capability errors are reported to the client once per engine
    capture_unsupported_reported: bool = False
    playback_unsupported_reported: bool = False

    # ------------------------------------------------------------------
    # Run/version tracking
    # ------------------------------------------------------------------
    active_runs: RunIds = field(default_factory=RunIds)

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------
    # Chosen at startup and on voice-list changes; each utterance
    # carries the voice that was current when it was requested.
    voice_id: str | None = None

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------
    turn_id: int = 0
    pending_user_text: str = ""

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------
    last_error: str | None = None
