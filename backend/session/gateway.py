"""
Session gateway.

Responsibilities:
- Owns VoiceSession lifecycle
- Routes inbound JSON control messages -> coordinator operations
- Builds the capture and playback engines for each session
- Answers malformed messages with an ERROR message (never closes the session)

NOT responsible for:
- Transition rules (reducer)
- Executing commands (coordinator)
- Socket I/O (routes)
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
from uuid import uuid4

from adapters.capture.speech_recognition_engine import SpeechRecognitionCaptureEngine
from adapters.playback.pyttsx3_engine import Pyttsx3PlaybackEngine
from context.recipe import RecipeContext
from observability.logger import log_event, now_ms
from orchestrator.coordinator import InteractionCoordinator
from orchestrator.events import Event
from orchestrator.runtime_context import RuntimeExecutionContext
from session.voice_session import VoiceSession

if TYPE_CHECKING:
    from config import AppConfig
    from resolver.intent_resolver import IntentResolver


EngineFactory = Callable[..., Any]

MSG_SESSION_INIT = "SESSION_INIT"
MSG_STEP_CHANGED = "STEP_CHANGED"
MSG_ERROR = "ERROR"


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


def default_capture_factory(
    *,
    emit_event: Callable[[Event], Awaitable[None]],
    session_id: str,
    config: AppConfig,
) -> Any:
    return SpeechRecognitionCaptureEngine(
        emit_event=emit_event,
        session_id=session_id,
        language=config.speech_language,
        phrase_limit_s=config.capture_phrase_limit_s,
        device_index=config.capture_device_index,
    )


def default_playback_factory(
    *,
    emit_event: Callable[[Event], Awaitable[None]],
    session_id: str,
    config: AppConfig,  # pylint: disable=unused-argument
) -> Any:
    return Pyttsx3PlaybackEngine(emit_event=emit_event, session_id=session_id)


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        JSON messages to send to client

    close:
        True when the client ended the session and the socket should close
    """
    outbound_json: tuple[dict[str, Any], ...] = ()
    close: bool = False


class InvalidMessageError(ValueError):
    """Inbound message is well-formed JSON but has unusable fields."""


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """
    One gateway == one cooking voice session.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        resolver: IntentResolver,
        capture_factory: EngineFactory | None = default_capture_factory,
        playback_factory: EngineFactory | None = default_playback_factory,
    ) -> None:
        self._config = config
        self._resolver = resolver
        self._capture_factory = capture_factory
        self._playback_factory = playback_factory
        self.session: VoiceSession | None = None

    @property
    def coordinator(self) -> InteractionCoordinator | None:
        return self.session.coordinator if self.session is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def on_ws_connect(self) -> GatewayResult:
        """Called when a WebSocket connection is established."""
        session_id = _new_session_id()

        session = VoiceSession(session_id=session_id, connected=True)
        self.session = session

        coordinator = InteractionCoordinator(
            context=RuntimeExecutionContext(session=session),
            language=self._config.speech_language,
        )

        if self._capture_factory is not None:
            session.attach_capture_engine(
                self._capture_factory(
                    emit_event=coordinator.handle_event,
                    session_id=session_id,
                    config=self._config,
                )
            )
        if self._playback_factory is not None:
            session.attach_playback_engine(
                self._playback_factory(
                    emit_event=coordinator.handle_event,
                    session_id=session_id,
                    config=self._config,
                )
            )
        session.attach_resolver(self._resolver)

        # Attach coordinator (must be AFTER engines)
        session.attach_coordinator(coordinator)

        log_event({
            "ts_ms": now_ms(),
            "event_type": "SESSION_CREATED",
            **session.log_context(),
        })

        await coordinator.start()

        init_msg: dict[str, Any] = {
            "type": MSG_SESSION_INIT,
            "session_id": session_id,
            "state": coordinator.state.state.value,
            "capture_supported": coordinator.state.capture_supported,
            "playback_supported": coordinator.state.playback_supported,
            "voice_id": coordinator.state.voice_id,
        }
        return GatewayResult(outbound_json=(init_msg,) + self._drain_control_out())

    async def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Called when the WebSocket disconnects."""
        if self.session is None:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        session = self.session
        if session.connected and session.coordinator is not None:
            await session.coordinator.shutdown()
        session.connected = False

        log_event({
            "ts_ms": now_ms(),
            "event_type": "SESSION_CLOSED",
            "reason": reason,
            **session.log_context(),
        })
        return GatewayResult(outbound_json=self._drain_control_out())

    async def next_outbound(self) -> tuple[dict[str, Any], ...]:
        """Block until the session has messages to push, then return them."""
        assert self.session is not None, "Session must exist before push"
        return await self.session.wait_control()

    # ------------------------------------------------------------------
    # Inbound control
    # ------------------------------------------------------------------

    async def on_json_message(self, payload: str) -> GatewayResult:
        """Route inbound JSON to coordinator operations."""
        if self.session is None or self.session.coordinator is None:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            return self._error("invalid_json", str(e), payload)

        if not isinstance(data, dict):
            return self._error("invalid_message", "expected a JSON object", payload)

        msg_type = data.get("type")
        coordinator = self.session.coordinator

        try:
            if msg_type == "LOAD_RECIPE":
                self._load_recipe(data)
            elif msg_type == "TOGGLE_LISTENING":
                await coordinator.toggle_listening()
            elif msg_type == "STOP_LISTENING":
                await coordinator.stop_listening()
            elif msg_type == "STOP_SPEAKING":
                await coordinator.stop_speaking()
            elif msg_type == "SET_MUTE":
                await coordinator.set_muted(_require(data, "muted", bool))
            elif msg_type == "ASK":
                await coordinator.submit_text(_require(data, "text", str))
            elif msg_type == "SPEAK":
                await coordinator.speak(_require(data, "text", str))
            elif msg_type == "STEP":
                await coordinator.request_step(_require(data, "delta", int))
            elif msg_type == "REFRESH_VOICES":
                await coordinator.refresh_voices()
            elif msg_type == "END_SESSION":
                await self.on_ws_disconnect(reason="client_end_session")
                return GatewayResult(outbound_json=self._drain_control_out(), close=True)
            else:
                return self._error("unknown_message_type", str(msg_type), payload)
        except InvalidMessageError as e:
            return self._error("invalid_message", str(e), payload)

        return GatewayResult(outbound_json=self._drain_control_out())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_recipe(self, data: dict[str, Any]) -> None:
        assert self.session is not None
        try:
            recipe = RecipeContext.from_payload(data)
        except (TypeError, ValueError) as e:
            raise InvalidMessageError(str(e)) from e

        cooking = self.session.load_recipe(recipe)
        snapshot = cooking.snapshot()

        log_event({
            "ts_ms": now_ms(),
            "event_type": "RECIPE_LOADED",
            "session_id": self.session.session_id,
            "title": snapshot.title,
            "step_count": snapshot.step_count,
            "current_step_index": snapshot.current_step_index,
        })

        self.session.enqueue_control({
            "type": MSG_STEP_CHANGED,
            "current_step": snapshot.current_step_one_based,
            "current_step_index": snapshot.current_step_index,
            "step_count": snapshot.step_count,
            "step_text": snapshot.current_step_text,
            "delta": 0,
            "source": "load",
        })

    def _error(self, code: str, detail: str, payload: str) -> GatewayResult:
        log_event({
            "ts_ms": now_ms(),
            "event_type": "INBOUND_MESSAGE_REJECTED",
            "session_id": self.session.session_id if self.session else None,
            "code": code,
            "detail": detail,
            "payload_preview": payload[:100],
        })
        error_msg = {"type": MSG_ERROR, "code": code, "detail": detail}
        return GatewayResult(outbound_json=self._drain_control_out() + (error_msg,))

    def _drain_control_out(self) -> tuple[dict[str, Any], ...]:
        if self.session is None:
            return ()
        return self.session.drain_control()


def _require(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    # bool is an int subclass; a step delta of `true` is not a number here
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise InvalidMessageError(f"'{key}' must be {kind.__name__}")
    return value
