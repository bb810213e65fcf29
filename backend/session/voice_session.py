"""
Per-connection holder for one cooking session.

Holds the engines, the recipe cursor, the turn history and the queue of
messages waiting to be pushed to the client. SessionGateway wires it up;
the coordinator reaches it through RuntimeExecutionContext. Interaction
state itself lives in the coordinator.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from context.conversation import ConversationContext
from context.recipe import RecipeContext
from session.cooking_session import CookingSession

if TYPE_CHECKING:
    from orchestrator.coordinator import InteractionCoordinator


# ---------------------------------------------------------------------
# VoiceSession
# ---------------------------------------------------------------------


@dataclass
class VoiceSession:
    """Mutable runtime container for a single cooking voice session."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)
    connected: bool = False

    # ------------------------------------------------------------------
    # Recipe + conversation (imperative, bounded)
    # ------------------------------------------------------------------

    conversation_context: ConversationContext = field(init=False)
    cooking_session: CookingSession | None = None

    # ------------------------------------------------------------------
    # Coordinator (executes commands + owns authoritative state)
    # ------------------------------------------------------------------

    coordinator: InteractionCoordinator | None = None

    # ------------------------------------------------------------------
    # Engines and resolver (concrete, side-effectful)
    # ------------------------------------------------------------------

    capture_engine: Any = None
    playback_engine: Any = None
    resolver: Any = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def __post_init__(self) -> None:
        self.conversation_context = ConversationContext(session_id=self.session_id)
        self._control_out: deque[dict[str, Any]] = deque()
        self._control_ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Wiring helpers (called by SessionGateway)
    # ------------------------------------------------------------------

    def attach_capture_engine(self, engine: Any) -> None:
        """Attach a concrete capture engine (CaptureEngineProtocol)."""
        self.capture_engine = engine

    def attach_playback_engine(self, engine: Any) -> None:
        """Attach a concrete playback engine (PlaybackEngineProtocol)."""
        self.playback_engine = engine

    def attach_resolver(self, resolver: Any) -> None:
        self.resolver = resolver

    def attach_coordinator(self, coordinator: InteractionCoordinator) -> None:
        """
        Attach the coordinator.

        Must be called after engines are attached.
        """
        self.coordinator = coordinator

    # ------------------------------------------------------------------
    # Recipe
    # ------------------------------------------------------------------

    def load_recipe(self, recipe: RecipeContext) -> CookingSession:
        """
        Replace the active recipe.

        Turn history belongs to one recipe and is cleared.
        """
        self.cooking_session = CookingSession.from_context(recipe)
        self.conversation_context.clear()
        return self.cooking_session

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "connected": self.connected,
            "recipe": (
                self.cooking_session.snapshot().title
                if self.cooking_session is not None else None
            ),
        }

    # ------------------------------------------------------------------
    # Client control queue
    # ------------------------------------------------------------------

    def enqueue_control(self, msg: dict[str, Any]) -> None:
        """
        Enqueue a control message for delivery to the client.

        Delivered in order by drain_control() or wait_control().
        """
        self._control_out.append(msg)
        self._control_ready.set()

    def drain_control(self) -> tuple[dict[str, Any], ...]:
        """
        Take every pending client message, oldest first.
        """
        self._control_ready.clear()
        if not self._control_out:
            return ()
        out = tuple(self._control_out)
        self._control_out.clear()
        return out

    async def wait_control(self) -> tuple[dict[str, Any], ...]:
        """
        Wait until at least one control message is pending, then drain.

        Used by the transport to push messages produced by engine callbacks
        and resolution results, which arrive outside any client request.
        """
        await self._control_ready.wait()
        return self.drain_control()
