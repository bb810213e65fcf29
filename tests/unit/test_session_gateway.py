# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
import json
from typing import Any

from config import AppConfig
from resolver.intent_resolver import IntentResolver
from resolver.knowledge_base import THANKS_REPLY
from session.gateway import SessionGateway


def make_gateway(capture: Any, playback: Any) -> SessionGateway:
    return SessionGateway(
        config=AppConfig(),
        resolver=IntentResolver(client=None),
        capture_factory=lambda **_: capture,
        playback_factory=lambda **_: playback,
    )


def test_connect_sends_session_init_first(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        gw = make_gateway(fake_capture_cls(), fake_playback_cls(supported=False))
        result = await gw.on_ws_connect()

        init = result.outbound_json[0]
        assert init["type"] == "SESSION_INIT"
        assert init["session_id"].startswith("sess_")
        assert init["state"] == "IDLE"
        assert init["capture_supported"] is True
        assert init["playback_supported"] is False
        assert result.outbound_json[1]["type"] == "CAPABILITY"

    asyncio.run(scenario())


def test_malformed_messages_get_error_replies(fake_capture_cls, fake_playback_cls, captured_logs):
    async def scenario() -> None:
        gw = make_gateway(fake_capture_cls(), fake_playback_cls())
        await gw.on_ws_connect()

        cases = [
            ("{not json", "invalid_json"),
            ("[1, 2]", "invalid_message"),
            (json.dumps({"type": "DANCE"}), "unknown_message_type"),
            (json.dumps({"type": "STEP", "delta": True}), "invalid_message"),
            (json.dumps({"type": "STEP", "delta": "1"}), "invalid_message"),
            (json.dumps({"type": "SET_MUTE", "muted": "yes"}), "invalid_message"),
            (json.dumps({"type": "ASK"}), "invalid_message"),
            (json.dumps({"type": "LOAD_RECIPE", "steps": "mix"}), "invalid_message"),
        ]
        for payload, code in cases:
            result = await gw.on_json_message(payload)
            assert result.close is False
            assert result.outbound_json[-1]["type"] == "ERROR"
            assert result.outbound_json[-1]["code"] == code

        # The session survives bad input
        assert gw.session is not None
        assert gw.session.connected is True
        rejected = [
            e for e in map(json.loads, captured_logs)
            if e.get("event_type") == "INBOUND_MESSAGE_REJECTED"
        ]
        assert len(rejected) == len(cases)

    asyncio.run(scenario())


def test_load_recipe_and_step(fake_capture_cls, fake_playback_cls, cake_payload):
    async def scenario() -> None:
        gw = make_gateway(fake_capture_cls(), fake_playback_cls())
        await gw.on_ws_connect()

        result = await gw.on_json_message(json.dumps({"type": "LOAD_RECIPE", **cake_payload}))
        loaded = result.outbound_json[0]
        assert loaded["type"] == "STEP_CHANGED"
        assert loaded["current_step"] == 3
        assert loaded["step_count"] == 6
        assert loaded["source"] == "load"

        result = await gw.on_json_message(json.dumps({"type": "STEP", "delta": 1}))
        moved = result.outbound_json[0]
        assert moved["current_step"] == 4
        assert moved["step_text"] == "Beat in the eggs one at a time."
        assert moved["source"] == "client"

    asyncio.run(scenario())


def test_ask_is_answered_and_spoken(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        playback = fake_playback_cls()
        gw = make_gateway(fake_capture_cls(), playback)
        await gw.on_ws_connect()

        result = await gw.on_json_message(json.dumps({"type": "ASK", "text": "thank you"}))
        assert result.outbound_json[0] == {
            "type": "STATE_CHANGED",
            "state": "PROCESSING",
            "desired_listening": False,
            "muted": False,
        }

        assert gw.coordinator is not None
        await gw.coordinator.settle()
        pushed = await gw.next_outbound()

        answer = [m for m in pushed if m["type"] == "ANSWER"][0]
        assert answer["text"] == THANKS_REPLY
        assert answer["source"] == "fallback"
        assert answer["spoken"] is True
        assert playback.spoken == [(1, THANKS_REPLY, None)]

    asyncio.run(scenario())


def test_toggle_mute_and_speak_messages(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        capture, playback = fake_capture_cls(), fake_playback_cls()
        gw = make_gateway(capture, playback)
        await gw.on_ws_connect()

        result = await gw.on_json_message(json.dumps({"type": "TOGGLE_LISTENING"}))
        assert result.outbound_json[0]["state"] == "LISTENING"
        assert capture.starts == [1]

        result = await gw.on_json_message(json.dumps({"type": "STOP_LISTENING"}))
        assert result.outbound_json[0]["state"] == "IDLE"

        result = await gw.on_json_message(json.dumps({"type": "SET_MUTE", "muted": True}))
        assert result.outbound_json[0]["muted"] is True

        result = await gw.on_json_message(json.dumps({"type": "REFRESH_VOICES"}))
        assert result.outbound_json == ()

        result = await gw.on_json_message(json.dumps({"type": "SPEAK", "text": "Hello"}))
        assert result.outbound_json == ()
        assert playback.spoken == []

    asyncio.run(scenario())


def test_end_session_closes(fake_capture_cls, fake_playback_cls):
    async def scenario() -> None:
        capture, playback = fake_capture_cls(), fake_playback_cls()
        gw = make_gateway(capture, playback)
        await gw.on_ws_connect()

        result = await gw.on_json_message(json.dumps({"type": "END_SESSION"}))

        assert result.close is True
        assert gw.session is not None
        assert gw.session.connected is False
        assert capture.shut_down is True
        assert playback.shut_down is True

        # A second disconnect does not shut down again
        capture.shut_down = False
        await gw.on_ws_disconnect(reason="client_disconnect")
        assert capture.shut_down is False

    asyncio.run(scenario())


def test_message_before_connect_is_dropped():
    async def scenario() -> None:
        gw = SessionGateway(
            config=AppConfig(),
            resolver=IntentResolver(client=None),
            capture_factory=None,
            playback_factory=None,
        )
        result = await gw.on_json_message(json.dumps({"type": "TOGGLE_LISTENING"}))
        assert result.outbound_json == ()

    asyncio.run(scenario())
