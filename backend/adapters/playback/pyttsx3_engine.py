"""Playback engine over pyttsx3."""
from __future__ import annotations

import asyncio
import queue
import threading
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from typing import Any

import pyttsx3

from adapters.playback.base import PlaybackEngine
from adapters.playback.voices import VoiceInfo
from constants import PLAYBACK_BASE_RATE_WPM, PLAYBACK_RATE_FACTOR
from errors import CapabilityUnavailableError
from observability.logger import log_event, now_ms
from orchestrator.enums.service import Service
from orchestrator.events import (
    Event,
    EventType,
    UtteranceEnded,
    UtteranceError,
    UtteranceStarted,
)


def _language_of(voice: Any) -> str:
    """
    pyttsx3 drivers report languages as str or bytes (espeak prefixes a
    length byte, e.g. b"\\x05en-us").
    """
    languages = getattr(voice, "languages", None) or []
    if not languages:
        return ""
    first = languages[0]
    if isinstance(first, bytes):
        first = first.decode("latin-1")
    return "".join(ch for ch in first if ch.isprintable()).strip()


class Pyttsx3PlaybackEngine(PlaybackEngine):
    """
    Text-to-speech on a dedicated worker thread.

    Design notes:
    - The pyttsx3 engine is created and driven only on the worker thread;
      runAndWait() blocks that thread for the length of one utterance.
    - started-utterance / finished-utterance / error callbacks fire on the
      worker thread and are posted back to the event loop.
    - cancel() calls engine.stop() from the loop thread, which ends the
      blocking runAndWait() early.
    """

    def __init__(
        self,
        *,
        emit_event: Callable[[Event], Awaitable[None]],
        session_id: str,
        rate_factor: float = PLAYBACK_RATE_FACTOR,
    ) -> None:
        self._emit_event = emit_event
        self._session_id = session_id
        self._rate = int(PLAYBACK_BASE_RATE_WPM * rate_factor)

        self._loop: asyncio.AbstractEventLoop | None = None
        self._jobs: queue.Queue[tuple[Callable[[], Any], Future[Any]] | None] = queue.Queue()
        self._worker: threading.Thread | None = None
        self._engine: Any = None
        self._init_error: str | None = None

        # Run bookkeeping is shared between the loop and the worker thread
        self._lock = threading.Lock()
        self._queued: set[int] = set()
        self._current_run: int | None = None
        self._cancelled: set[int] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def probe(self) -> bool:
        await self._ensure_worker()
        return self._engine is not None

    async def list_voices(self) -> list[VoiceInfo]:
        await self._ensure_worker()
        if self._engine is None:
            return []

        def _read() -> list[VoiceInfo]:
            return [
                VoiceInfo(
                    voice_id=str(v.id),
                    name=str(getattr(v, "name", "") or ""),
                    language=_language_of(v),
                    gender=str(getattr(v, "gender", "") or ""),
                )
                for v in self._engine.getProperty("voices") or []
            ]

        return await self._call(_read)

    async def speak(self, run_id: int, text: str, voice_id: str | None) -> None:
        await self._ensure_worker()
        if self._engine is None:
            raise CapabilityUnavailableError("playback", self._init_error or "unsupported")

        def _say() -> None:
            self._run_utterance(run_id, text, voice_id)

        with self._lock:
            self._queued.add(run_id)
        # Fire and forget: the terminal event reports the outcome.
        self._submit(_say)

    async def cancel(self, run_id: int) -> None:
        with self._lock:
            in_flight = self._current_run == run_id
            if not in_flight and run_id not in self._queued:
                # Already finished; nothing to cancel.
                return
            self._cancelled.add(run_id)
        if in_flight and self._engine is not None:
            self._engine.stop()

    async def shutdown(self) -> None:
        if self._current_run is not None and self._engine is not None:
            self._engine.stop()
        if self._worker is not None:
            self._jobs.put(None)
            await asyncio.to_thread(self._worker.join, 2.0)
            self._worker = None

    # ------------------------------------------------------------------
    # Worker thread
    # ------------------------------------------------------------------

    async def _ensure_worker(self) -> None:
        if self._worker is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._worker = threading.Thread(
            target=self._worker_main,
            name=f"tts-{self._session_id}",
            daemon=True,
        )
        self._worker.start()
        await self._call(self._init_engine)

    def _worker_main(self) -> None:
        while True:
            job = self._jobs.get()
            if job is None:
                return
            fn, fut = job
            if not fut.set_running_or_notify_cancel():
                continue
            try:
                fut.set_result(fn())
            except Exception as exc:  # pylint: disable=broad-exception-caught
                fut.set_exception(exc)

    def _submit(self, fn: Callable[[], Any]) -> Future[Any]:
        fut: Future[Any] = Future()
        self._jobs.put((fn, fut))
        return fut

    async def _call(self, fn: Callable[[], Any]) -> Any:
        return await asyncio.wrap_future(self._submit(fn))

    def _init_engine(self) -> None:
        try:
            engine = pyttsx3.init()
        except (ImportError, OSError, RuntimeError) as exc:
            self._init_error = f"{type(exc).__name__}: {exc}"
            log_event({
                "ts_ms": now_ms(),
                "event_type": "PLAYBACK_INIT_FAILED",
                "session_id": self._session_id,
                "error": self._init_error,
            })
            return

        engine.setProperty("rate", self._rate)
        engine.connect("started-utterance", self._on_started)
        engine.connect("finished-utterance", self._on_finished)
        engine.connect("error", self._on_error)
        self._engine = engine

    def _run_utterance(self, run_id: int, text: str, voice_id: str | None) -> None:
        with self._lock:
            self._queued.discard(run_id)
            if run_id in self._cancelled:
                self._cancelled.discard(run_id)
                skipped = True
            else:
                self._current_run = run_id
                skipped = False
        if skipped:
            # Cancelled before the worker reached it.
            self._post(self._ended(run_id))
            return

        try:
            if voice_id is not None:
                self._engine.setProperty("voice", voice_id)
            self._engine.say(text, str(run_id))
            self._engine.runAndWait()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._post(
                UtteranceError(
                    event_type=EventType.UTTERANCE_ERROR,
                    ts_ms=now_ms(),
                    service=Service.PLAYBACK,
                    run_id=run_id,
                    reason=f"{type(exc).__name__}: {exc}",
                )
            )
        finally:
            with self._lock:
                self._current_run = None
                self._cancelled.discard(run_id)

    # ------------------------------------------------------------------
    # pyttsx3 callbacks (worker thread)
    # ------------------------------------------------------------------

    def _on_started(self, name: str) -> None:
        self._post(
            UtteranceStarted(
                event_type=EventType.UTTERANCE_STARTED,
                ts_ms=now_ms(),
                service=Service.PLAYBACK,
                run_id=int(name),
            )
        )

    def _on_finished(self, name: str, completed: bool) -> None:
        log_event({
            "ts_ms": now_ms(),
            "event_type": "utterance_finished",
            "session_id": self._session_id,
            "playback_run_id": int(name),
            "completed": completed,
        })
        self._post(self._ended(int(name)))

    def _on_error(self, name: str, exception: Exception) -> None:
        self._post(
            UtteranceError(
                event_type=EventType.UTTERANCE_ERROR,
                ts_ms=now_ms(),
                service=Service.PLAYBACK,
                run_id=int(name),
                reason=f"{type(exception).__name__}: {exception}",
            )
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ended(run_id: int) -> UtteranceEnded:
        return UtteranceEnded(
            event_type=EventType.UTTERANCE_ENDED,
            ts_ms=now_ms(),
            service=Service.PLAYBACK,
            run_id=run_id,
        )

    def _post(self, event: Event) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self._emit_event(event), loop)
