# pylint: disable=missing-module-docstring,missing-function-docstring
from __future__ import annotations

from typing import Any

import pytest

from adapters.playback.voices import VoiceInfo
from observability import logger


# ---------------------------------------------------------------------
# Fake engines (record calls, never emit on their own)
# ---------------------------------------------------------------------

class FakeCaptureEngine:
    def __init__(self, supported: bool = True, start_error: Exception | None = None) -> None:
        self.supported = supported
        self.start_error = start_error
        self.starts: list[int] = []
        self.stops: list[int] = []
        self.shut_down = False

    async def probe(self) -> bool:
        return self.supported

    async def start(self, run_id: int) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.starts.append(run_id)

    async def stop(self, run_id: int) -> None:
        self.stops.append(run_id)

    async def shutdown(self) -> None:
        self.shut_down = True


class FakePlaybackEngine:
    def __init__(
        self,
        supported: bool = True,
        voices: list[VoiceInfo] | None = None,
    ) -> None:
        self.supported = supported
        self.voices = voices or []
        self.spoken: list[tuple[int, str, str | None]] = []
        self.cancelled: list[int] = []
        self.shut_down = False

    async def probe(self) -> bool:
        return self.supported

    async def list_voices(self) -> list[VoiceInfo]:
        return list(self.voices)

    async def speak(self, run_id: int, text: str, voice_id: str | None) -> None:
        self.spoken.append((run_id, text, voice_id))

    async def cancel(self, run_id: int) -> None:
        self.cancelled.append(run_id)

    async def shutdown(self) -> None:
        self.shut_down = True


class FakeReasoningClient:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[list[dict[str, str]]] = []

    async def complete(self, messages: list[dict[str, str]]) -> str:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


CLASSIC_CAKE: dict[str, Any] = {
    "title": "Classic Cake",
    "steps": [
        "Preheat the oven to 350F.",
        "Grease and flour a 9-inch pan.",
        "Cream the butter and sugar.",
        "Beat in the eggs one at a time.",
        "Fold in the flour.",
        "Bake for 30 minutes.",
    ],
    "current_step": 3,
}


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------

@pytest.fixture(autouse=True)
def captured_logs(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Keep JSONL output off stdout; tests may inspect the lines."""
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    return lines


@pytest.fixture
def fake_capture_cls() -> type[FakeCaptureEngine]:
    return FakeCaptureEngine


@pytest.fixture
def fake_playback_cls() -> type[FakePlaybackEngine]:
    return FakePlaybackEngine


@pytest.fixture
def fake_client_cls() -> type[FakeReasoningClient]:
    return FakeReasoningClient


@pytest.fixture
def cake_payload() -> dict[str, Any]:
    return {**CLASSIC_CAKE, "steps": list(CLASSIC_CAKE["steps"])}
