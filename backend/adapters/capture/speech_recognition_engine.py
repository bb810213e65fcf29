"""Capture engine over the SpeechRecognition library."""
from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any

import speech_recognition as sr

from adapters.capture.base import CaptureEngine
from constants import (
    CAPTURE_AMBIENT_CALIBRATION_S,
    CAPTURE_LISTEN_POLL_S,
    CAPTURE_PHRASE_LIMIT_S,
    CAPTURE_SILENCE_TIMEOUT_S,
    SPEECH_LANGUAGE_DEFAULT,
)
from errors import CapabilityUnavailableError
from observability.logger import log_event, now_ms
from orchestrator.enums.service import Service
from orchestrator.events import (
    CaptureEnded,
    CaptureError,
    CaptureResult,
    CaptureStarted,
    Event,
    EventType,
)


class SpeechRecognitionCaptureEngine(CaptureEngine):
    """
    Microphone capture with Google Web Speech recognition.

    Design notes:
    - One engine instance serves every run of one session.
    - Each run gets its own listener thread. It polls recognizer.listen()
      so stop() is noticed within CAPTURE_LISTEN_POLL_S, and it waits for
      the previous run's thread before opening the microphone.
    - Every started run posts exactly one terminal event, including when
      the audio stream fails mid-turn.
    - Events are posted back to the event loop with run_coroutine_threadsafe.
    """

    def __init__(
        self,
        *,
        emit_event: Callable[[Event], Awaitable[None]],
        session_id: str,
        language: str = SPEECH_LANGUAGE_DEFAULT,
        phrase_limit_s: float = CAPTURE_PHRASE_LIMIT_S,
        silence_timeout_s: float = CAPTURE_SILENCE_TIMEOUT_S,
        device_index: int | None = None,
        recognizer: Any = None,
    ) -> None:
        """
        Args:
            emit_event:
                Callback used to emit events into the coordinator.
            session_id:
                Session identifier for logging/correlation.
            language:
                BCP-47 language tag passed to the recognizer.
            phrase_limit_s:
                Max seconds of speech per listening turn.
            silence_timeout_s:
                Seconds without speech before the turn ends as "timeout".
            device_index:
                Microphone index; None selects the system default.
            recognizer:
                sr.Recognizer instance (injectable for tests).
        """
        self._emit_event = emit_event
        self._session_id = session_id
        self._language = language
        self._phrase_limit_s = phrase_limit_s
        self._silence_timeout_s = silence_timeout_s
        self._device_index = device_index
        self._recognizer = recognizer or sr.Recognizer()

        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = threading.Lock()
        self._active_run: int | None = None
        self._listener: threading.Thread | None = None
        self._calibrated = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def probe(self) -> bool:
        try:
            names = await asyncio.to_thread(sr.Microphone.list_microphone_names)
        except (AttributeError, OSError) as exc:
            # AttributeError: PyAudio is not installed
            log_event({
                "ts_ms": now_ms(),
                "event_type": "CAPTURE_PROBE_FAILED",
                "session_id": self._session_id,
                "error": f"{type(exc).__name__}: {exc}",
            })
            return False
        return len(names) > 0

    async def start(self, run_id: int) -> None:
        if self._active_run is not None:
            return

        self._loop = asyncio.get_running_loop()

        try:
            microphone = sr.Microphone(device_index=self._device_index)
            if not self._calibrated:
                await asyncio.to_thread(self._calibrate, microphone)
                self._calibrated = True
        except (AttributeError, OSError) as exc:
            raise CapabilityUnavailableError("capture", "audio-capture") from exc

        with self._lock:
            self._active_run = run_id

        await self._emit_event(
            CaptureStarted(
                event_type=EventType.CAPTURE_STARTED,
                ts_ms=now_ms(),
                service=Service.CAPTURE,
                run_id=run_id,
            )
        )

        previous = self._listener
        self._listener = threading.Thread(
            target=self._listen_turn,
            args=(run_id, microphone, previous),
            name=f"capture-{self._session_id}-{run_id}",
            daemon=True,
        )
        self._listener.start()

    async def stop(self, run_id: int) -> None:
        self._release(run_id)

    async def shutdown(self) -> None:
        with self._lock:
            self._active_run = None

    # ------------------------------------------------------------------
    # Listener thread
    # ------------------------------------------------------------------

    def _calibrate(self, microphone: Any) -> None:
        with microphone as source:
            self._recognizer.adjust_for_ambient_noise(
                source, duration=CAPTURE_AMBIENT_CALIBRATION_S
            )

    def _is_active(self, run_id: int) -> bool:
        with self._lock:
            return self._active_run == run_id

    def _release(self, run_id: int) -> None:
        with self._lock:
            if self._active_run == run_id:
                self._active_run = None

    def _listen_turn(
        self,
        run_id: int,
        microphone: Any,
        previous: threading.Thread | None,
    ) -> None:
        if previous is not None:
            previous.join()

        try:
            audio, reason = self._wait_for_phrase(run_id, microphone)
        except OSError as exc:
            # PyAudio stream failures: input overflow, device unplugged
            self._release(run_id)
            log_event({
                "ts_ms": now_ms(),
                "event_type": "CAPTURE_STREAM_FAILED",
                "session_id": self._session_id,
                "capture_run_id": run_id,
                "error": f"{type(exc).__name__}: {exc}",
            })
            self._post(
                CaptureError(
                    event_type=EventType.CAPTURE_ERROR,
                    ts_ms=now_ms(),
                    service=Service.CAPTURE,
                    run_id=run_id,
                    reason=f"audio: {exc}",
                    fatal=False,
                )
            )
            return

        self._release(run_id)
        if audio is None:
            self._post(
                CaptureEnded(
                    event_type=EventType.CAPTURE_ENDED,
                    ts_ms=now_ms(),
                    service=Service.CAPTURE,
                    run_id=run_id,
                    reason=reason,
                )
            )
            return

        self._recognize(run_id, audio)

    def _wait_for_phrase(self, run_id: int, microphone: Any) -> tuple[Any, str]:
        """Return (audio, "") for a phrase, or (None, reason) without one."""
        deadline = time.monotonic() + self._silence_timeout_s
        with microphone as source:
            while self._is_active(run_id):
                try:
                    audio = self._recognizer.listen(
                        source,
                        timeout=CAPTURE_LISTEN_POLL_S,
                        phrase_time_limit=self._phrase_limit_s,
                    )
                except sr.WaitTimeoutError:
                    if time.monotonic() >= deadline:
                        return None, "timeout"
                    continue
                return audio, ""
        return None, "stopped"

    def _recognize(self, run_id: int, audio: Any) -> None:
        """
        One phrase per run. A phrase heard before stop() took effect is
        still recognized and reported under its own run id.
        """
        event: Event
        try:
            text = self._recognizer.recognize_google(audio, language=self._language)
            event = CaptureResult(
                event_type=EventType.CAPTURE_RESULT,
                ts_ms=now_ms(),
                service=Service.CAPTURE,
                run_id=run_id,
                text=text,
            )
        except sr.UnknownValueError:
            event = CaptureEnded(
                event_type=EventType.CAPTURE_ENDED,
                ts_ms=now_ms(),
                service=Service.CAPTURE,
                run_id=run_id,
                reason="no_match",
            )
        except sr.RequestError as exc:
            event = CaptureError(
                event_type=EventType.CAPTURE_ERROR,
                ts_ms=now_ms(),
                service=Service.CAPTURE,
                run_id=run_id,
                reason=f"network: {exc}",
                fatal=False,
            )

        self._post(event)

    def _post(self, event: Event) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self._emit_event(event), loop)
