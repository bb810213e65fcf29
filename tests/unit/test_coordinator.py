# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
from typing import Any

from adapters.playback.voices import VoiceInfo
from context.recipe import RecipeContext
from errors import CapabilityUnavailableError
from orchestrator.coordinator import InteractionCoordinator
from orchestrator.enums.service import Service
from orchestrator.enums.state import State
from orchestrator.events import CaptureResult, EventType, UtteranceEnded
from orchestrator.runtime_context import RuntimeExecutionContext
from resolver.intent_resolver import IntentResolver
from session.voice_session import VoiceSession


def build(
    capture: Any,
    playback: Any,
    resolver: Any,
) -> tuple[VoiceSession, InteractionCoordinator]:
    session = VoiceSession(session_id="sess_test", connected=True)
    session.attach_capture_engine(capture)
    session.attach_playback_engine(playback)
    session.attach_resolver(resolver)
    coordinator = InteractionCoordinator(context=RuntimeExecutionContext(session=session))
    session.attach_coordinator(coordinator)
    return session, coordinator


def capture_result(run_id: int, text: str) -> CaptureResult:
    return CaptureResult(
        event_type=EventType.CAPTURE_RESULT,
        ts_ms=0,
        service=Service.CAPTURE,
        run_id=run_id,
        text=text,
    )


def utterance_ended(run_id: int) -> UtteranceEnded:
    return UtteranceEnded(
        event_type=EventType.UTTERANCE_ENDED,
        ts_ms=0,
        service=Service.PLAYBACK,
        run_id=run_id,
    )


def types_of(messages: tuple[dict[str, Any], ...]) -> list[str]:
    return [m["type"] for m in messages]


class BlockingResolver:
    """Never answers until cancelled."""

    def __init__(self) -> None:
        self.cancelled = False

    async def resolve(self, transcript, recipe=None, *, history=None, session_id=None):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


def test_start_probes_and_selects_voice(fake_capture_cls, fake_playback_cls):
    voices = [
        VoiceInfo(voice_id="espeak", name="English (America)", language="en-us"),
        VoiceInfo(voice_id="zira", name="Microsoft Zira Desktop", language="en-US"),
    ]

    async def scenario() -> None:
        session, coordinator = build(
            fake_capture_cls(),
            fake_playback_cls(voices=voices),
            IntentResolver(client=None),
        )
        await coordinator.start()

        assert coordinator.state.voice_id == "zira"
        assert coordinator.state.capture_supported is True
        messages = session.drain_control()
        assert messages[0] == {
            "type": "CAPABILITY",
            "capture_supported": True,
            "playback_supported": True,
        }

    asyncio.run(scenario())


def test_spoken_navigation_moves_step_silently(fake_capture_cls, fake_playback_cls, cake_payload):
    async def scenario() -> None:
        capture, playback = fake_capture_cls(), fake_playback_cls()
        session, coordinator = build(capture, playback, IntentResolver(client=None))
        await coordinator.start()
        session.load_recipe(RecipeContext.from_payload(cake_payload))
        session.drain_control()

        await coordinator.toggle_listening()
        assert capture.starts == [1]
        assert coordinator.state.state is State.LISTENING

        await coordinator.handle_event(capture_result(1, "go back 2 steps"))
        assert capture.stops == [1]
        await coordinator.settle()

        assert session.cooking_session is not None
        assert session.cooking_session.current_step_index == 0
        assert coordinator.state.state is State.IDLE
        assert playback.spoken == []

        messages = session.drain_control()
        step_changed = [m for m in messages if m["type"] == "STEP_CHANGED"]
        assert step_changed[0]["current_step"] == 1
        assert step_changed[0]["source"] == "rule"
        answer = [m for m in messages if m["type"] == "ANSWER"][0]
        assert answer["spoken"] is False
        assert answer["user_text"] == "go back 2 steps"

    asyncio.run(scenario())


def test_remote_answer_is_spoken_then_idle(
    fake_capture_cls, fake_playback_cls, fake_client_cls, cake_payload
):
    async def scenario() -> None:
        playback = fake_playback_cls(
            voices=[VoiceInfo(voice_id="zira", name="Microsoft Zira", language="en-US")]
        )
        client = fake_client_cls(reply='Set the oven to 350F.\n@{"step_delta": 1}')
        session, coordinator = build(fake_capture_cls(), playback, IntentResolver(client=client))
        await coordinator.start()
        session.load_recipe(RecipeContext.from_payload(cake_payload))

        await coordinator.submit_text("what temperature should the oven be")
        assert coordinator.state.state is State.PROCESSING
        await coordinator.settle()

        assert coordinator.state.state is State.SPEAKING
        assert playback.spoken == [(1, "Set the oven to 350F.", "zira")]
        assert session.cooking_session is not None
        assert session.cooking_session.current_step_index == 3
        assert session.conversation_context.serialize()[-1] == {
            "role": "assistant",
            "content": "Set the oven to 350F.",
        }

        await coordinator.handle_event(utterance_ended(1))
        assert coordinator.state.state is State.IDLE

    asyncio.run(scenario())


def test_mute_before_completion_suppresses_speech(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        playback = fake_playback_cls()
        session, coordinator = build(fake_capture_cls(), playback, IntentResolver(client=None))
        await coordinator.start()

        await coordinator.submit_text("thank you")
        await coordinator.set_muted(True)
        await coordinator.settle()

        assert coordinator.state.state is State.IDLE
        assert playback.spoken == []
        answer = [m for m in session.drain_control() if m["type"] == "ANSWER"][0]
        assert answer["spoken"] is False

    asyncio.run(scenario())


def test_capture_start_failure_reports_capability(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        capture = fake_capture_cls(
            start_error=CapabilityUnavailableError("capture", "not-allowed")
        )
        session, coordinator = build(capture, fake_playback_cls(), IntentResolver(client=None))
        await coordinator.start()
        session.drain_control()

        await coordinator.toggle_listening()

        assert coordinator.state.state is State.IDLE
        assert coordinator.state.capture_supported is False
        capability = [m for m in session.drain_control() if m["type"] == "CAPABILITY"]
        assert capability == [
            {"type": "CAPABILITY", "capability": "capture", "supported": False, "reason": "not-allowed"}
        ]

        # No auto-restart loop and no second report
        await coordinator.toggle_listening()
        assert capture.starts == []
        assert types_of(session.drain_control()) == []

    asyncio.run(scenario())


def test_unsupported_playback_degrades_to_text(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        playback = fake_playback_cls(supported=False)
        session, coordinator = build(fake_capture_cls(), playback, IntentResolver(client=None))
        await coordinator.start()

        await coordinator.submit_text("thank you")
        await coordinator.settle()

        assert coordinator.state.state is State.IDLE
        assert playback.spoken == []
        answer = [m for m in session.drain_control() if m["type"] == "ANSWER"][0]
        assert answer["spoken"] is False

    asyncio.run(scenario())


def test_step_request_without_recipe_is_harmless(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        session, coordinator = build(
            fake_capture_cls(), fake_playback_cls(), IntentResolver(client=None)
        )
        await coordinator.start()
        session.drain_control()

        await coordinator.request_step(1)

        assert session.drain_control() == ()
        assert coordinator.state.state is State.IDLE

    asyncio.run(scenario())


def test_speak_stops_listening_first(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        capture, playback = fake_capture_cls(), fake_playback_cls()
        _, coordinator = build(capture, playback, IntentResolver(client=None))
        await coordinator.start()

        await coordinator.toggle_listening()
        await coordinator.speak("Fold in the flour.")

        assert capture.stops == [1]
        assert playback.spoken == [(1, "Fold in the flour.", None)]
        assert coordinator.state.state is State.SPEAKING
        assert coordinator.state.desired_listening is False

        await coordinator.stop_speaking()
        assert playback.cancelled == [1]
        assert coordinator.state.state is State.IDLE

    asyncio.run(scenario())


def test_shutdown_cancels_resolution_and_releases_engines(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        capture, playback = fake_capture_cls(), fake_playback_cls()
        resolver = BlockingResolver()
        _, coordinator = build(capture, playback, resolver)
        await coordinator.start()

        await coordinator.submit_text("how long do I bake it")
        await asyncio.sleep(0)
        assert coordinator.state.state is State.PROCESSING

        await coordinator.shutdown()
        await asyncio.sleep(0)

        assert resolver.cancelled is True
        assert coordinator.state.state is State.IDLE
        assert capture.shut_down is True
        assert playback.shut_down is True

    asyncio.run(scenario())
