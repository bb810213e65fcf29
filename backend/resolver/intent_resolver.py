"""
Intent resolution.

Maps a transcript plus an optional recipe snapshot to a ResolvedAnswer:

1. Deterministic navigation rules          (source=rule, silent)
2. Remote reasoning service                (source=remote, spoken)
3. Local cooking knowledge base            (source=fallback, spoken)

Rules:
- resolve() never raises; every remote failure degrades to stage 3.
- Remote failures are logged, never surfaced to the user.
- No state machine knowledge; the coordinator decides what to do with
  the answer.
"""

from __future__ import annotations

import asyncio

from adapters.llm.base import ReasoningClient
from adapters.llm.prompts import SYSTEM_PROMPT_V1
from context.recipe import RecipeContext
from context.serialization import serialize_for_reasoning
from errors import (
    RemoteErrorCategory,
    RemoteResolutionError,
    classify_remote_error,
)
from observability.logger import log_event, now_ms
from observability.metrics import timed
from resolver.answer import AnswerSource, ResolvedAnswer
from resolver.knowledge_base import APOLOGY_REPLY, KnowledgeBase
from resolver.reply import parse_reply
from resolver.rules import match_navigation


class IntentResolver:
    """
    Stateless resolution pipeline.

    One instance may be shared by every session; per-session data
    (recipe snapshot, turn history, session id) is passed per call.
    """

    def __init__(
        self,
        *,
        client: ReasoningClient | None,
        knowledge_base: KnowledgeBase | None = None,
        system_prompt: str = SYSTEM_PROMPT_V1,
    ) -> None:
        self._client = client
        self._knowledge_base = knowledge_base or KnowledgeBase()
        self._system_prompt = system_prompt

    @property
    def knowledge_base(self) -> KnowledgeBase:
        return self._knowledge_base

    async def resolve(
        self,
        transcript: str,
        recipe: RecipeContext | None = None,
        *,
        history: list[dict[str, str]] | None = None,
        session_id: str | None = None,
    ) -> ResolvedAnswer:
        """Resolve one transcript. Never raises (except on cancellation)."""
        try:
            answer = match_navigation(transcript, recipe)
            if answer is not None:
                return answer

            try:
                return await self._resolve_remote(
                    transcript, recipe, history or [], session_id
                )
            except RemoteResolutionError as exc:
                log_event({
                    "ts_ms": now_ms(),
                    "event_type": "REMOTE_RESOLUTION_FAILED",
                    "session_id": session_id,
                    "category": exc.category,
                    "detail": exc.detail,
                })
                return self._knowledge_base.answer(transcript)

        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": now_ms(),
                "event_type": "RESOLVER_INTERNAL_ERROR",
                "session_id": session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return ResolvedAnswer(APOLOGY_REPLY, 0, AnswerSource.FALLBACK)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _resolve_remote(
        self,
        transcript: str,
        recipe: RecipeContext | None,
        history: list[dict[str, str]],
        session_id: str | None,
    ) -> ResolvedAnswer:
        if self._client is None:
            raise RemoteResolutionError(RemoteErrorCategory.UNCONFIGURED)

        messages = serialize_for_reasoning(
            system_prompt=self._system_prompt,
            recipe=recipe,
            history=history,
            user_text=transcript,
        )

        with timed("remote_resolution", session_id=session_id) as extra:
            try:
                reply = await self._client.complete(messages)
            except asyncio.CancelledError:
                extra["outcome"] = "cancelled"
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                error = classify_remote_error(exc)
                extra["outcome"] = error.category
                raise error from exc
            extra["outcome"] = "ok"
            extra["reply_chars"] = len(reply)

        text, delta = parse_reply(reply)
        if not text:
            raise RemoteResolutionError(RemoteErrorCategory.EMPTY_REPLY)

        return ResolvedAnswer(text, delta, AnswerSource.REMOTE)
