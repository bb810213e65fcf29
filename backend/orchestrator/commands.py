"""
Work orders from the reducer to the coordinator.

The reducer only describes side effects; the coordinator performs them.
Every concrete command is a frozen dataclass with a CommandType
discriminant, so a transition can be asserted on in tests without
running anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    These are stable discriminants used for logging and runtime dispatch.
    """

    # Capture
    START_CAPTURE = "START_CAPTURE"
    STOP_CAPTURE = "STOP_CAPTURE"

    # Playback
    START_UTTERANCE = "START_UTTERANCE"
    CANCEL_UTTERANCE = "CANCEL_UTTERANCE"

    # Resolution
    RESOLVE_TRANSCRIPT = "RESOLVE_TRANSCRIPT"
    CANCEL_RESOLUTION = "CANCEL_RESOLUTION"

    # Cooking session / conversation
    APPLY_STEP_DELTA = "APPLY_STEP_DELTA"
    COMMIT_TURN = "COMMIT_TURN"

    # Client
    NOTIFY_CLIENT = "NOTIFY_CLIENT"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is the stable name for logs; it does not depend on the
    Python class name.
    """

    command_type: CommandType


# =============================================================================
# Capture Commands
# =============================================================================

@dataclass(frozen=True)
class StartCapture(Command):
    """Request to start one listening turn."""
    run_id: int
    command_type: CommandType = CommandType.START_CAPTURE


@dataclass(frozen=True)
class StopCapture(Command):
    """Request to stop the active listening turn. Safe if it never started."""
    run_id: int
    command_type: CommandType = CommandType.STOP_CAPTURE


# =============================================================================
# Playback Commands
# =============================================================================

@dataclass(frozen=True)
class StartUtterance(Command):
    """
    Request to speak one utterance.

    voice_id is fixed at request time; later voice reselection does not
    affect an utterance already requested.
    """
    run_id: int
    text: str
    voice_id: str | None
    command_type: CommandType = CommandType.START_UTTERANCE


@dataclass(frozen=True)
class CancelUtterance(Command):
    """Request to cancel an in-flight utterance. Idempotent."""
    run_id: int
    command_type: CommandType = CommandType.CANCEL_UTTERANCE


# =============================================================================
# Resolution Commands
# =============================================================================

@dataclass(frozen=True)
class ResolveTranscript(Command):
    """
    Request one resolution cycle.

    The coordinator must emit exactly one ResolutionCompleted carrying run_id,
    unless the run is cancelled first.
    """
    run_id: int
    turn_id: int
    text: str
    command_type: CommandType = CommandType.RESOLVE_TRANSCRIPT


@dataclass(frozen=True)
class CancelResolution(Command):
    """Request to abandon an in-flight resolution."""
    run_id: int
    command_type: CommandType = CommandType.CANCEL_RESOLUTION


# =============================================================================
# Cooking Session / Conversation Commands
# =============================================================================

@dataclass(frozen=True)
class ApplyStepDelta(Command):
    """Move the active recipe by delta steps (clamped by the session)."""
    delta: int
    source: str
    command_type: CommandType = CommandType.APPLY_STEP_DELTA


@dataclass(frozen=True)
class CommitTurn(Command):
    """Commit completed turn to conversation context."""
    turn_id: int
    user_text: str
    assistant_text: str
    command_type: CommandType = CommandType.COMMIT_TURN


# =============================================================================
# Client Commands
# =============================================================================

@dataclass(frozen=True)
class NotifyClient(Command):
    """
    Send a JSON control or UI message to the client.
    """
    message_type: str
    data: dict[str, Any]
    command_type: CommandType = CommandType.NOTIFY_CLIENT


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
