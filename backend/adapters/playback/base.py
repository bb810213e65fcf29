"""
Playback engine contract.

Key invariants:
- Run IDs are owned by the coordinator. Engines never generate or mutate them.
- The engine emits playback events; it does not call the reducer or make
  state transitions.
- Mute is NOT an engine concern: the coordinator re-checks it when
  UtteranceStarted arrives and cancels if needed.
- Cancellation is explicit: cancel(run_id) is a request to stop producing
  output for that run as quickly as possible.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from adapters.playback.voices import VoiceInfo


class PlaybackEngine(ABC):
    """
    Abstract interface for a text-to-speech engine.

    Note: emit_event callback must be async.

    Implementations are responsible for:
    - Speaking one utterance per speak() call, with the requested voice
    - Producing UtteranceStarted / UtteranceEnded / UtteranceError events
      for that run_id
    - Supporting cancellation via cancel()

    Non-responsibilities:
    - No queueing policy (the coordinator cancels before speaking again)
    - No voice selection policy
    - No state machine logic
    """

    @abstractmethod
    async def probe(self) -> bool:
        """Return True if the platform can speak at all. Never raises."""
        raise NotImplementedError

    @abstractmethod
    async def list_voices(self) -> list[VoiceInfo]:
        """Current platform voice list (may be empty)."""
        raise NotImplementedError

    @abstractmethod
    async def speak(self, run_id: int, text: str, voice_id: str | None) -> None:
        """
        Begin speaking text for run_id and return without waiting for the end.

        Contract:
        - Must emit exactly ONE terminal event per accepted utterance:
            - UtteranceEnded(run_id)
            OR
            - UtteranceError(run_id, reason)
        - voice_id None means the platform default voice.
        - Raises CapabilityUnavailableError if no speech driver exists.
        """
        raise NotImplementedError

    @abstractmethod
    async def cancel(self, run_id: int) -> None:
        """
        Request cancellation of the specified utterance.

        Contract:
        - Best-effort, idempotent.
        - Must NOT raise if run_id is unknown or already finished.
        """
        raise NotImplementedError

    async def shutdown(self) -> None:
        """Release platform resources. Default: nothing to release."""
        return None
