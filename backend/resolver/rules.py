"""
Deterministic step-navigation rules.

Evaluated in order, first match wins, case-insensitive:

1. "next step" / "skip ... step"          -> +N   (N defaults to 1)
2. "go back" / "previous step"             -> -N
3. "first step" / "start" / "beginning"    -> -current
4. "last step" / "end" / "final"           -> (count - 1) - current
5. "(go to|jump to|step|row) <N>"          -> (N - 1) - current   (N is 1-based)

Rules 3-5 need a recipe snapshot and are skipped without one.
"""

from __future__ import annotations

import re

from context.recipe import RecipeContext
from resolver.answer import AnswerSource, ResolvedAnswer


_NUMBER_WORDS: dict[str, int] = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}
_NUMBER = r"(\d+|" + "|".join(_NUMBER_WORDS) + r")"

_FORWARD = re.compile(r"\bnext steps?\b|\bskip\b.*\bsteps?\b")
_BACKWARD = re.compile(r"\bgo back\b|\bprevious steps?\b")
_FIRST = re.compile(r"\bfirst step\b|\bstart\b|\bbeginning\b")
_LAST = re.compile(r"\blast step\b|\bend\b|\bfinal\b")
_GOTO = re.compile(r"\b(?:go to|jump to|step|row)\s+(?:number\s+)?" + _NUMBER + r"\b")
_EMBEDDED_NUMBER = re.compile(r"\b" + _NUMBER + r"\b")


def _to_int(token: str) -> int:
    return int(token) if token.isdigit() else _NUMBER_WORDS[token]


def extract_step_count(text: str) -> int:
    """First embedded count ("skip 2 steps", "go back three"), default 1."""
    match = _EMBEDDED_NUMBER.search(text)
    return _to_int(match.group(1)) if match else 1


def _plural(n: int) -> str:
    return "step" if abs(n) == 1 else "steps"


def match_navigation(
    transcript: str,
    recipe: RecipeContext | None,
) -> ResolvedAnswer | None:
    """Return a navigation answer, or None when no rule matches."""
    text = transcript.lower().strip()

    if _FORWARD.search(text):
        n = extract_step_count(text)
        return ResolvedAnswer(f"Moving forward {n} {_plural(n)}.", n, AnswerSource.RULE)

    if _BACKWARD.search(text):
        n = extract_step_count(text)
        return ResolvedAnswer(f"Moving back {n} {_plural(n)}.", -n, AnswerSource.RULE)

    if recipe is None:
        return None

    current = recipe.current_step_index

    if _FIRST.search(text):
        return ResolvedAnswer("Going to the first step.", -current, AnswerSource.RULE)

    if _LAST.search(text):
        delta = (recipe.step_count - 1) - current
        return ResolvedAnswer("Jumping to the last step.", delta, AnswerSource.RULE)

    match = _GOTO.search(text)
    if match:
        target = _to_int(match.group(1))
        return ResolvedAnswer(
            f"Jumping to step {target}.",
            (target - 1) - current,
            AnswerSource.RULE,
        )

    return None
