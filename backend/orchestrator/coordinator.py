"""
Interaction coordinator for a single cooking session.

Responsibilities:
- Own the authoritative interaction state
- Call the pure reducer, one event at a time
- Execute commands with side effects (engines, resolver, recipe cursor)
- Expose the user-facing operations (toggle, stop, speak, mute, ask)

Non-responsibilities:
- Transition rules (reducer)
- Transport (gateway / routes)
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import TYPE_CHECKING

from adapters.playback.voices import select_voice
from constants import SPEECH_LANGUAGE_DEFAULT
from errors import CapabilityUnavailableError
from observability.logger import log_event, now_ms
from orchestrator.commands import (
    ApplyStepDelta,
    CancelResolution,
    CancelUtterance,
    Command,
    CommitTurn,
    LogEvent,
    NotifyClient,
    ResolveTranscript,
    StartCapture,
    StartUtterance,
    StopCapture,
)
from orchestrator.enums.service import Service
from orchestrator.events import (
    CapabilityProbed,
    CaptureError,
    Event,
    EventType,
    ResolutionCompleted,
    SessionEnded,
    SessionStarted,
    SetMute,
    SpeakRequested,
    StepRequested,
    StopListening,
    StopSpeaking,
    TextSubmitted,
    ToggleListening,
    UtteranceError,
    VoicesChanged,
)
from orchestrator.reducer import reduce
from orchestrator.state_dataclass import CoordinatorState

if TYPE_CHECKING:
    from orchestrator.runtime_context import RuntimeExecutionContext


MSG_STEP_CHANGED = "STEP_CHANGED"


class InteractionCoordinator:
    """
    Execution boundary for a single cooking session.

    Architectural role:
    The coordinator is the bridge between the pure layer (reducer +
    immutable state) and the imperative world (engines, resolver, logging).

    Guarantees:
    - Reducer is called exactly once per incoming event
    - Events are queued and drained in order; an event emitted while a
      command is executing never re-enters the reducer
    - All side effects occur *after* state has been updated
    - Engines and the resolver report back only through handle_event
    """

    def __init__(
        self,
        *,
        context: RuntimeExecutionContext,
        initial_state: CoordinatorState | None = None,
        language: str = SPEECH_LANGUAGE_DEFAULT,
    ) -> None:
        self._ctx = context
        self._state = initial_state or CoordinatorState()
        self._language = language

        self._pending: deque[Event] = deque()
        self._draining = False

        # At most one in flight in practice; keyed by resolver run_id
        self._resolutions: dict[int, asyncio.Task[None]] = {}

    @property
    def state(self) -> CoordinatorState:
        """
        Current immutable coordinator state.

        Consumers must treat it as read-only; it is only replaced
        internally via the reducer.
        """
        return self._state

    # ------------------------------------------------------------------
    # Event entry point
    # ------------------------------------------------------------------

    async def handle_event(self, event: Event) -> None:
        """
        Single entry point for every event source.

        If a drain is already running (this call came from inside a command,
        or from another task while a command awaited), the event is queued
        and processed by that drain after the current event's commands.
        """
        self._pending.append(event)
        if self._draining:
            return

        self._draining = True
        try:
            while self._pending:
                next_event = self._pending.popleft()
                new_state, commands = reduce(self._state, next_event)
                self._state = new_state
                for cmd in commands:
                    await self._execute_command(cmd)
        finally:
            self._draining = False

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Announce the session, probe platform capabilities and pick a voice."""
        await self.handle_event(
            SessionStarted(
                event_type=EventType.SESSION_STARTED,
                ts_ms=now_ms(),
                session_id=self._ctx.session_id,
            )
        )

        capture = self._ctx.capture_engine
        playback = self._ctx.playback_engine
        capture_ok = await capture.probe() if capture is not None else False
        playback_ok = await playback.probe() if playback is not None else False

        await self.handle_event(
            CapabilityProbed(
                event_type=EventType.CAPABILITY_PROBED,
                ts_ms=now_ms(),
                capture_supported=capture_ok,
                playback_supported=playback_ok,
            )
        )

        if playback_ok:
            await self.refresh_voices()

    async def refresh_voices(self) -> None:
        """Re-score the platform voice list. Never interrupts playback."""
        playback = self._ctx.playback_engine
        if playback is None:
            return

        voices = await playback.list_voices()
        chosen = select_voice(voices, self._language)
        await self.handle_event(
            VoicesChanged(
                event_type=EventType.VOICES_CHANGED,
                ts_ms=now_ms(),
                voice_id=chosen.voice_id if chosen is not None else None,
                voice_count=len(voices),
            )
        )

    async def toggle_listening(self) -> None:
        await self.handle_event(
            ToggleListening(event_type=EventType.TOGGLE_LISTENING, ts_ms=now_ms())
        )

    async def stop_listening(self) -> None:
        await self.handle_event(
            StopListening(event_type=EventType.STOP_LISTENING, ts_ms=now_ms())
        )

    async def stop_speaking(self) -> None:
        await self.handle_event(
            StopSpeaking(event_type=EventType.STOP_SPEAKING, ts_ms=now_ms())
        )

    async def speak(self, text: str) -> None:
        await self.handle_event(
            SpeakRequested(event_type=EventType.SPEAK_REQUESTED, ts_ms=now_ms(), text=text)
        )

    async def set_muted(self, muted: bool) -> None:
        await self.handle_event(
            SetMute(event_type=EventType.SET_MUTE, ts_ms=now_ms(), muted=muted)
        )

    async def submit_text(self, text: str) -> None:
        await self.handle_event(
            TextSubmitted(event_type=EventType.TEXT_SUBMITTED, ts_ms=now_ms(), text=text)
        )

    async def request_step(self, delta: int) -> None:
        await self.handle_event(
            StepRequested(event_type=EventType.STEP_REQUESTED, ts_ms=now_ms(), delta=delta)
        )

    async def settle(self) -> None:
        """Wait until no resolution cycle is in flight."""
        while self._resolutions:
            await asyncio.gather(*self._resolutions.values(), return_exceptions=True)

    async def shutdown(self) -> None:
        """
        Clean shutdown.

        Stops capture and playback through the reducer, then cancels any
        in-flight resolution and releases engine resources.
        """
        await self.handle_event(
            SessionEnded(
                event_type=EventType.SESSION_ENDED,
                ts_ms=now_ms(),
                session_id=self._ctx.session_id,
            )
        )

        tasks = list(self._resolutions.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._resolutions.clear()

        for engine in (self._ctx.capture_engine, self._ctx.playback_engine):
            if engine is not None:
                await engine.shutdown()

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    async def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "session_id": self._ctx.session_id,
            })

        elif isinstance(cmd, StartCapture):
            await self._start_capture(cmd.run_id)

        elif isinstance(cmd, StopCapture):
            engine = self._ctx.capture_engine
            if engine is not None:
                await engine.stop(cmd.run_id)

        elif isinstance(cmd, StartUtterance):
            await self._start_utterance(cmd)

        elif isinstance(cmd, CancelUtterance):
            engine = self._ctx.playback_engine
            if engine is not None:
                await engine.cancel(cmd.run_id)

        elif isinstance(cmd, ResolveTranscript):
            self._start_resolution(cmd)

        elif isinstance(cmd, CancelResolution):
            task = self._resolutions.pop(cmd.run_id, None)
            if task is not None and not task.done():
                task.cancel()

        elif isinstance(cmd, ApplyStepDelta):
            self._apply_step_delta(cmd)

        elif isinstance(cmd, CommitTurn):
            self._ctx.conversation_context.commit_turn(
                cmd.turn_id, cmd.user_text, cmd.assistant_text
            )
            log_event({
                "ts_ms": now_ms(),
                "event_type": "turn_committed",
                "session_id": self._ctx.session_id,
                "turn_id": cmd.turn_id,
            })

        elif isinstance(cmd, NotifyClient):
            self._ctx.enqueue_control({"type": cmd.message_type, **cmd.data})

        else:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "COMMAND_NOT_IMPLEMENTED",
                "session_id": self._ctx.session_id,
                "command_type": type(cmd).__name__,
            })

    async def _start_capture(self, run_id: int) -> None:
        engine = self._ctx.capture_engine
        reason: str | None = None

        if engine is None:
            reason = "unsupported"
        else:
            try:
                await engine.start(run_id)
            except CapabilityUnavailableError as exc:
                reason = exc.reason
            except Exception as exc:  # pylint: disable=broad-exception-caught
                # A start that cannot even begin is treated as a capability
                # loss; retrying it would auto-restart forever.
                log_event({
                    "ts_ms": now_ms(),
                    "event_type": "CAPTURE_START_FAILED",
                    "session_id": self._ctx.session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
                reason = "audio-capture"

        if reason is not None:
            await self.handle_event(
                CaptureError(
                    event_type=EventType.CAPTURE_ERROR,
                    ts_ms=now_ms(),
                    service=Service.CAPTURE,
                    run_id=run_id,
                    reason=reason,
                    fatal=True,
                )
            )

    async def _start_utterance(self, cmd: StartUtterance) -> None:
        engine = self._ctx.playback_engine
        reason: str | None = None
        fatal = False

        if engine is None:
            reason, fatal = "unsupported", True
        else:
            try:
                await engine.speak(cmd.run_id, cmd.text, cmd.voice_id)
            except CapabilityUnavailableError as exc:
                reason, fatal = exc.reason, True
            except Exception as exc:  # pylint: disable=broad-exception-caught
                reason = f"{type(exc).__name__}: {exc}"

        if reason is not None:
            await self.handle_event(
                UtteranceError(
                    event_type=EventType.UTTERANCE_ERROR,
                    ts_ms=now_ms(),
                    service=Service.PLAYBACK,
                    run_id=cmd.run_id,
                    reason=reason,
                    fatal=fatal,
                )
            )

    def _start_resolution(self, cmd: ResolveTranscript) -> None:
        resolver = self._ctx.resolver
        assert resolver is not None, "Resolver missing"

        # Snapshot now: the recipe cursor may move before the reply lands.
        cooking = self._ctx.cooking_session
        recipe = cooking.snapshot() if cooking is not None else None
        history = self._ctx.conversation_context.serialize()
        session_id = self._ctx.session_id

        async def _resolve() -> None:
            try:
                answer = await resolver.resolve(
                    cmd.text,
                    recipe,
                    history=history,
                    session_id=session_id,
                )
                await self.handle_event(
                    ResolutionCompleted(
                        event_type=EventType.RESOLUTION_COMPLETED,
                        ts_ms=now_ms(),
                        service=Service.RESOLVER,
                        run_id=cmd.run_id,
                        answer=answer,
                    )
                )
            except asyncio.CancelledError:
                log_event({
                    "ts_ms": now_ms(),
                    "event_type": "resolution_cancelled",
                    "session_id": session_id,
                    "resolver_run_id": cmd.run_id,
                })
            finally:
                if self._resolutions.get(cmd.run_id) is asyncio.current_task():
                    del self._resolutions[cmd.run_id]

        self._resolutions[cmd.run_id] = asyncio.create_task(_resolve())

    def _apply_step_delta(self, cmd: ApplyStepDelta) -> None:
        cooking = self._ctx.cooking_session
        if cooking is None:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "step_delta_without_recipe",
                "session_id": self._ctx.session_id,
                "delta": cmd.delta,
            })
            return

        before = cooking.current_step_index
        after = cooking.apply_step_delta(cmd.delta)
        snapshot = cooking.snapshot()

        log_event({
            "ts_ms": now_ms(),
            "event_type": "step_delta_applied",
            "session_id": self._ctx.session_id,
            "delta": cmd.delta,
            "from_index": before,
            "to_index": after,
            "clamped": before + cmd.delta != after,
            "source": cmd.source,
        })

        self._ctx.enqueue_control({
            "type": MSG_STEP_CHANGED,
            "current_step": snapshot.current_step_one_based,
            "current_step_index": after,
            "step_count": snapshot.step_count,
            "step_text": snapshot.current_step_text,
            "delta": cmd.delta,
            "source": cmd.source,
        })
