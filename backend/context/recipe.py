"""
Recipe context snapshot.

A read-only view of the active recipe, taken once per resolution call.
Step indices are 0-based here; anything user-facing is 1-based.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RecipeContext:
    """Immutable snapshot of the active recipe."""

    title: str
    steps: tuple[str, ...]
    current_step_index: int = 0
    step_durations: tuple[float, ...] = ()

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def current_step_one_based(self) -> int:
        return self.current_step_index + 1

    @property
    def current_step_text(self) -> str:
        if 0 <= self.current_step_index < self.step_count:
            return self.steps[self.current_step_index]
        return ""

    def to_payload(self) -> dict[str, Any]:
        """Serializable form used in remote prompts and client messages."""
        return {
            "title": self.title,
            "current_step": self.current_step_one_based,
            "current_step_text": self.current_step_text,
            "step_count": self.step_count,
            "steps": list(self.steps),
            "step_durations": list(self.step_durations),
        }

    @staticmethod
    def from_payload(data: dict[str, Any]) -> RecipeContext:
        """
        Build a snapshot from a client payload.

        `current_step` is accepted 1-based, the way clients display it.

        Raises:
            ValueError if steps are missing or not a list of strings.
        """
        steps = data.get("steps")
        if not isinstance(steps, list) or not all(isinstance(s, str) for s in steps):
            raise ValueError("steps must be a list of strings")

        durations = data.get("step_durations") or []
        current = int(data.get("current_step", 1)) - 1
        return RecipeContext(
            title=str(data.get("title", "")),
            steps=tuple(steps),
            current_step_index=max(0, min(current, max(len(steps) - 1, 0))),
            step_durations=tuple(float(d) for d in durations),
        )
