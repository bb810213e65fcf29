"""
Active recipe session.

Owns the current step index for one recipe and applies step deltas.
Deltas are clamped into [0, step_count - 1]; they are never rejected.
"""

from __future__ import annotations

from context.recipe import RecipeContext


class CookingSession:
    """Mutable step cursor over an ordered list of recipe steps."""

    def __init__(
        self,
        *,
        title: str,
        steps: list[str] | tuple[str, ...],
        step_durations: list[float] | tuple[float, ...] = (),
        current_step_index: int = 0,
    ) -> None:
        self._title = title
        self._steps = tuple(steps)
        self._durations = tuple(step_durations)
        self._index = self._clamp(current_step_index)

    @staticmethod
    def from_context(recipe: RecipeContext) -> CookingSession:
        return CookingSession(
            title=recipe.title,
            steps=recipe.steps,
            step_durations=recipe.step_durations,
            current_step_index=recipe.current_step_index,
        )

    @property
    def current_step_index(self) -> int:
        return self._index

    @property
    def step_count(self) -> int:
        return len(self._steps)

    def snapshot(self) -> RecipeContext:
        """Read-only view handed to the resolver."""
        return RecipeContext(
            title=self._title,
            steps=self._steps,
            current_step_index=self._index,
            step_durations=self._durations,
        )

    def apply_step_delta(self, delta: int) -> int:
        """Move by `delta` steps, clamped. Returns the new index."""
        self._index = self._clamp(self._index + delta)
        return self._index

    def _clamp(self, index: int) -> int:
        if not self._steps:
            return 0
        return max(0, min(index, len(self._steps) - 1))
