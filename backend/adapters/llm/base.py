"""
Remote reasoning contract.

Purpose:
- Define the interface for one-shot chat completions.
- Keep fallback policy, reply parsing and timing OUT of the client.

Rules:
- This file contains NO logic.
- No retries.
- No parsing of the reply.
- No knowledge of capture, playback, or the state machine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ReasoningClient(ABC):
    """
    Abstract base class for remote reasoning clients.

    The client is a *dumb pipe*:
    messages -> vendor -> reply text.

    Resolver responsibilities (NOT here):
    - Deciding when to call
    - Falling back on failure
    - Extracting the step delta
    - Truncating the spoken reply
    """

    @abstractmethod
    async def complete(self, messages: list[dict[str, str]]) -> str:
        """
        Run one chat completion and return the raw reply text.

        Contract:
        - Must raise RemoteResolutionError on any failure, including
          timeout, transport error, non-2xx status and empty reply.
        - Must NOT retry internally.
        - Must NOT block the event loop.

        Args:
            messages:
                Fully built chat messages, system prompt first.
        """
        raise NotImplementedError
