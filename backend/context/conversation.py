"""
Recent question/answer history for the active recipe.

The history is sent to the remote reasoning service with every question so
follow-ups ("and after that?") make sense. A turn is one question together
with its answer, and turns are only ever kept or dropped whole. The window
is bounded two ways, both from constants.py: a maximum number of turns and
a maximum total character count. The oldest turn goes first. A lone turn
that is still too long is kept and reported.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Literal

from constants import MAX_CONTEXT_CHARS, MAX_CONTEXT_TURNS
from observability.logger import log_event, now_ms


Speaker = Literal["user", "assistant"]


@dataclass(frozen=True)
class Turn:
    role: Speaker
    text: str
    turn_id: int


class ConversationContext:
    """
    Bounded turn history, owned by one VoiceSession.

    The coordinator commits a turn once its answer is known; loading a new
    recipe clears the history.
    """

    def __init__(self, session_id: str | None = None) -> None:
        self._session_id = session_id
        self._turns: deque[tuple[Turn, Turn]] = deque()
        self._chars = 0

    def __len__(self) -> int:
        return len(self._turns)

    def commit_turn(self, turn_id: int, user_text: str, assistant_text: str) -> None:
        """Record one question and its answer, then enforce the bounds."""
        self._turns.append((
            Turn(role="user", text=user_text, turn_id=turn_id),
            Turn(role="assistant", text=assistant_text, turn_id=turn_id),
        ))
        self._chars += len(user_text) + len(assistant_text)
        self._enforce_bounds()

    def clear(self) -> None:
        self._turns.clear()
        self._chars = 0

    def serialize(self) -> list[dict[str, str]]:
        """Chat-completion messages, oldest first."""
        return [
            {"role": t.role, "content": t.text}
            for pair in self._turns
            for t in pair
        ]

    def _over_budget(self) -> bool:
        return len(self._turns) > MAX_CONTEXT_TURNS or self._chars > MAX_CONTEXT_CHARS

    def _enforce_bounds(self) -> None:
        while self._over_budget():
            if len(self._turns) == 1:
                question, answer = self._turns[0]
                log_event({
                    "ts_ms": now_ms(),
                    "event_type": "context_single_turn_oversized",
                    "session_id": self._session_id,
                    "turn_id": question.turn_id,
                    "char_count": len(question.text) + len(answer.text),
                })
                return

            question, answer = self._turns.popleft()
            char_count = len(question.text) + len(answer.text)
            self._chars -= char_count
            log_event({
                "ts_ms": now_ms(),
                "event_type": "context_turn_dropped",
                "session_id": self._session_id,
                "turn_id": question.turn_id,
                "char_count": char_count,
            })
