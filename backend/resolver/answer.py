"""
Resolution result.

Rules:
- Pure data model, frozen.
- step_delta is a signed offset; clamping is the cooking session's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AnswerSource(str, Enum):
    """Which stage of the resolution order produced the answer."""

    RULE = "rule"
    REMOTE = "remote"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ResolvedAnswer:
    """One answer per resolution cycle."""

    response_text: str
    step_delta: int = 0
    source: AnswerSource = AnswerSource.FALLBACK

    @property
    def silent(self) -> bool:
        """Navigation commands are executed without speaking."""
        return self.source is AnswerSource.RULE
