"""
Capture engine contract.

Key invariants:
- Run IDs are owned by the coordinator. Engines never generate or mutate them.
- One start() == one listening turn == at most one transcript.
- The engine emits capture events; it does not restart itself. Auto-restart
  while the user still wants to listen is a coordinator decision.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CaptureEngine(ABC):
    """
    Abstract interface for a speech-to-text engine.

    Note: emit_event callback must be async.

    Every started run ends with exactly one terminal event:
    - CaptureResult(run_id, text)       finalized transcript
    - CaptureEnded(run_id, reason)      no usable speech
    - CaptureError(run_id, reason, fatal)
    """

    @abstractmethod
    async def probe(self) -> bool:
        """Return True if the platform can capture speech. Never raises."""
        raise NotImplementedError

    @abstractmethod
    async def start(self, run_id: int) -> None:
        """
        Begin one listening turn.

        Contract:
        - No-op if a run is already active.
        - Raises CapabilityUnavailableError if the platform cannot capture.
        - Returns once capture is live; the transcript arrives later as an event.
        """
        raise NotImplementedError

    @abstractmethod
    async def stop(self, run_id: int) -> None:
        """
        Request termination of the listening turn.

        Contract:
        - Idempotent; safe if the run never started.
        - A transcript already being recognized may still be delivered.
        """
        raise NotImplementedError

    async def shutdown(self) -> None:
        """Release platform resources. Default: nothing to release."""
        return None
