"""
Coordinator execution context.

Provides the coordinator with live access to session-owned imperative
resources needed for command execution (engines, resolver, recipe,
conversation history, client control queue).

This module contains:
- Narrow Protocols (capabilities, not implementations)
- Zero orchestration logic
- Zero state mutation
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from adapters.playback.voices import VoiceInfo
    from context.conversation import ConversationContext
    from context.recipe import RecipeContext
    from resolver.answer import ResolvedAnswer
    from session.cooking_session import CookingSession
    from session.voice_session import VoiceSession


# ---------------------------------------------------------------------
# Engine Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class CaptureEngineProtocol(Protocol):
    """
    Speech-to-text engine.

    Contract:
    - start() begins one listening turn for run_id and must emit exactly one
      terminal event: CaptureResult, CaptureEnded or CaptureError.
    - stop() is idempotent and safe if the run never started.
    """

    async def probe(self) -> bool: ...
    async def start(self, run_id: int) -> None: ...
    async def stop(self, run_id: int) -> None: ...
    async def shutdown(self) -> None: ...


@runtime_checkable
class PlaybackEngineProtocol(Protocol):
    """
    Text-to-speech engine.

    Contract:
    - At most one utterance outstanding; speak() replaces nothing on its own,
      the coordinator cancels first.
    - Each accepted utterance emits UtteranceStarted (optional) and exactly
      one of UtteranceEnded or UtteranceError.
    """

    async def probe(self) -> bool: ...
    async def list_voices(self) -> list[VoiceInfo]: ...
    async def speak(self, run_id: int, text: str, voice_id: str | None) -> None: ...
    async def cancel(self, run_id: int) -> None: ...
    async def shutdown(self) -> None: ...


@runtime_checkable
class ResolverProtocol(Protocol):
    async def resolve(
        self,
        transcript: str,
        recipe: RecipeContext | None = None,
        *,
        history: list[dict[str, str]] | None = None,
        session_id: str | None = None,
    ) -> ResolvedAnswer: ...


# ---------------------------------------------------------------------
# Coordinator Execution Context
# ---------------------------------------------------------------------

class RuntimeExecutionContext:
    """
    Imperative execution context for the coordinator.

    This object provides *live views* into session-owned resources
    so the coordinator does not need to synchronize or cache anything.

    The coordinator is allowed to:
    - Call engines and the resolver
    - Move the recipe cursor and append turns
    - Queue client messages

    The coordinator is NOT allowed to:
    - Replace session-owned objects
    - Perform transport work
    """

    def __init__(self, session: VoiceSession) -> None:
        self.session = session

    # ----------------------------
    # Session metadata
    # ----------------------------

    @property
    def session_id(self) -> str:
        return self.session.session_id

    # ----------------------------
    # Engines
    # ----------------------------

    @property
    def capture_engine(self) -> CaptureEngineProtocol | None:
        return self.session.capture_engine

    @property
    def playback_engine(self) -> PlaybackEngineProtocol | None:
        return self.session.playback_engine

    @property
    def resolver(self) -> ResolverProtocol | None:
        return self.session.resolver

    # ----------------------------
    # Recipe / conversation
    # ----------------------------

    @property
    def cooking_session(self) -> CookingSession | None:
        return self.session.cooking_session

    @property
    def conversation_context(self) -> ConversationContext:
        return self.session.conversation_context

    def enqueue_control(self, msg: dict[str, object]) -> None:
        self.session.enqueue_control(msg)
