"""
Inputs to the interaction reducer.

Three kinds of facts arrive here: what the user did (toggle, mute, ask),
what an engine reported (capture result, utterance end) and what the
resolver answered. The last two are ServiceEvents tagged with the run id
they belong to; timestamps are stamped by whoever creates the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from orchestrator.enums.service import Service
from resolver.answer import ResolvedAnswer


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (state, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    SESSION_STARTED = "SESSION_STARTED"
    SESSION_ENDED = "SESSION_ENDED"
    CAPABILITY_PROBED = "CAPABILITY_PROBED"
    VOICES_CHANGED = "VOICES_CHANGED"

    # ------------------------------------------------------------------
    # User control
    # ------------------------------------------------------------------
    TOGGLE_LISTENING = "TOGGLE_LISTENING"
    STOP_LISTENING = "STOP_LISTENING"
    SPEAK_REQUESTED = "SPEAK_REQUESTED"
    STOP_SPEAKING = "STOP_SPEAKING"
    SET_MUTE = "SET_MUTE"
    TEXT_SUBMITTED = "TEXT_SUBMITTED"
    STEP_REQUESTED = "STEP_REQUESTED"

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------
    CAPTURE_STARTED = "CAPTURE_STARTED"
    CAPTURE_RESULT = "CAPTURE_RESULT"
    CAPTURE_ENDED = "CAPTURE_ENDED"
    CAPTURE_ERROR = "CAPTURE_ERROR"

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------
    UTTERANCE_STARTED = "UTTERANCE_STARTED"
    UTTERANCE_ENDED = "UTTERANCE_ENDED"
    UTTERANCE_ERROR = "UTTERANCE_ERROR"

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    RESOLUTION_COMPLETED = "RESOLUTION_COMPLETED"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Service-Scoped Events
# =============================================================================

@dataclass(frozen=True)
class ServiceEvent(Event):
    """
    Base class for events scoped to a versioned external service.

    The reducer MUST ignore events whose run_id does not match the
    currently active run for that service.
    """

    service: Service
    run_id: int


# =============================================================================
# Session Events
# =============================================================================

@dataclass(frozen=True)
class SessionStarted(Event):
    """Session started."""
    session_id: str


@dataclass(frozen=True)
class SessionEnded(Event):
    """Session ended; every engine run is abandoned."""
    session_id: str


@dataclass(frozen=True)
class CapabilityProbed(Event):
    """Result of the platform capability probe."""
    capture_supported: bool
    playback_supported: bool


@dataclass(frozen=True)
class VoicesChanged(Event):
    """The playback voice list changed and a voice was (re)selected."""
    voice_id: str | None
    voice_count: int = 0


# =============================================================================
# User Control Events
# =============================================================================

@dataclass(frozen=True)
class ToggleListening(Event):
    """User pressed the microphone button."""


@dataclass(frozen=True)
class StopListening(Event):
    """User explicitly stopped capture."""


@dataclass(frozen=True)
class SpeakRequested(Event):
    """Request to read text aloud."""
    text: str


@dataclass(frozen=True)
class StopSpeaking(Event):
    """User requested playback to stop."""


@dataclass(frozen=True)
class SetMute(Event):
    """User changed the mute switch."""
    muted: bool


@dataclass(frozen=True)
class TextSubmitted(Event):
    """Typed question, resolved on the same pipeline as a transcript."""
    text: str


@dataclass(frozen=True)
class StepRequested(Event):
    """Direct step navigation from the UI (not spoken)."""
    delta: int


# =============================================================================
# Capture Events
# =============================================================================

@dataclass(frozen=True)
class CaptureStarted(ServiceEvent):
    """Capture engine is live."""


@dataclass(frozen=True)
class CaptureResult(ServiceEvent):
    """Finalized transcript for one listening turn."""
    text: str


@dataclass(frozen=True)
class CaptureEnded(ServiceEvent):
    """Capture ended without a transcript (silence, timeout, no match)."""
    reason: str = "no_speech"


@dataclass(frozen=True)
class CaptureError(ServiceEvent):
    """
    Capture failure.

    fatal=True means the platform cannot capture at all
    (no microphone, permission denied); otherwise it is transient.
    """
    reason: str
    fatal: bool = False


# =============================================================================
# Playback Events
# =============================================================================

@dataclass(frozen=True)
class UtteranceStarted(ServiceEvent):
    """Platform began speaking the utterance."""


@dataclass(frozen=True)
class UtteranceEnded(ServiceEvent):
    """Utterance finished or was cancelled by the platform."""


@dataclass(frozen=True)
class UtteranceError(ServiceEvent):
    """Playback failure; fatal=True means no speech driver is available."""
    reason: str
    fatal: bool = False


# =============================================================================
# Resolution Events
# =============================================================================

@dataclass(frozen=True)
class ResolutionCompleted(ServiceEvent):
    """The resolver produced its single answer for this cycle."""
    answer: ResolvedAnswer
