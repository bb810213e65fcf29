# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
import json
from typing import Any

from context.recipe import RecipeContext
from errors import RemoteErrorCategory, RemoteResolutionError
from resolver.answer import AnswerSource, ResolvedAnswer
from resolver.intent_resolver import IntentResolver
from resolver.knowledge_base import APOLOGY_REPLY, TEMPERATURE_REPLY, KnowledgeBase


CAKE = RecipeContext(
    title="Classic Cake",
    steps=("preheat", "grease", "cream", "beat", "fold", "bake"),
    current_step_index=2,
)


def resolve(resolver: IntentResolver, transcript: str, **kwargs: Any) -> ResolvedAnswer:
    return asyncio.run(resolver.resolve(transcript, CAKE, **kwargs))


def events_of(lines: list[str], event_type: str) -> list[dict[str, Any]]:
    decoded = [json.loads(line) for line in lines]
    return [e for e in decoded if e.get("event_type") == event_type]


def test_navigation_never_calls_remote(fake_client_cls):
    client = fake_client_cls(reply="should not be used")
    answer = resolve(IntentResolver(client=client), "go back 2 steps")

    assert answer.source is AnswerSource.RULE
    assert answer.step_delta == -2
    assert client.calls == []


def test_remote_reply_with_marker(fake_client_cls):
    client = fake_client_cls(reply='Bake it at 350F until golden.\n@{"step_delta": 1}')
    answer = resolve(IntentResolver(client=client), "what temperature should the oven be")

    assert answer == ResolvedAnswer("Bake it at 350F until golden.", 1, AnswerSource.REMOTE)


def test_remote_messages_carry_recipe_and_history(fake_client_cls):
    client = fake_client_cls(reply="Sure.")
    history = [
        {"role": "user", "content": "what do I need"},
        {"role": "assistant", "content": "Flour and eggs."},
    ]
    resolve(IntentResolver(client=client), "how long do I bake it", history=history)

    messages = client.calls[0]
    assert messages[0]["role"] == "system"
    assert "step 3 of 6" in messages[0]["content"]
    assert "Classic Cake" in messages[0]["content"]
    assert messages[1:3] == history
    assert messages[-1] == {"role": "user", "content": "how long do I bake it"}


def test_remote_failure_falls_back_to_knowledge_base(fake_client_cls, captured_logs):
    client = fake_client_cls(error=RemoteResolutionError(RemoteErrorCategory.TIMEOUT))
    answer = resolve(
        IntentResolver(client=client),
        "what temperature for chicken",
        session_id="sess_1",
    )

    assert answer.response_text == TEMPERATURE_REPLY
    assert answer.source is AnswerSource.FALLBACK

    failures = events_of(captured_logs, "REMOTE_RESOLUTION_FAILED")
    assert failures[0]["category"] == RemoteErrorCategory.TIMEOUT
    assert failures[0]["session_id"] == "sess_1"


def test_unexpected_client_error_is_classified(fake_client_cls, captured_logs):
    client = fake_client_cls(error=RuntimeError("boom"))
    answer = resolve(IntentResolver(client=client), "what temperature")

    assert answer.source is AnswerSource.FALLBACK
    failures = events_of(captured_logs, "REMOTE_RESOLUTION_FAILED")
    assert failures[0]["category"] == RemoteErrorCategory.UNKNOWN


def test_unconfigured_remote_uses_knowledge_base(captured_logs):
    answer = resolve(IntentResolver(client=None), "thank you")

    assert answer.source is AnswerSource.FALLBACK
    failures = events_of(captured_logs, "REMOTE_RESOLUTION_FAILED")
    assert failures[0]["category"] == RemoteErrorCategory.UNCONFIGURED


def test_marker_only_reply_counts_as_empty(fake_client_cls, captured_logs):
    client = fake_client_cls(reply='@{"step_delta": 1}')
    answer = resolve(IntentResolver(client=client), "what temperature")

    assert answer.source is AnswerSource.FALLBACK
    assert answer.step_delta == 0
    failures = events_of(captured_logs, "REMOTE_RESOLUTION_FAILED")
    assert failures[0]["category"] == RemoteErrorCategory.EMPTY_REPLY


def test_remote_call_is_timed(fake_client_cls, captured_logs):
    client = fake_client_cls(reply="Sure.")
    resolve(IntentResolver(client=client), "what temperature")

    timers = events_of(captured_logs, "METRIC_TIMER")
    assert timers[0]["metric"] == "remote_resolution"
    assert timers[0]["details"]["outcome"] == "ok"


class BrokenKnowledgeBase(KnowledgeBase):
    def answer(self, transcript: str) -> ResolvedAnswer:
        raise ValueError("corrupt catalogue")


def test_internal_error_yields_apology(captured_logs):
    resolver = IntentResolver(client=None, knowledge_base=BrokenKnowledgeBase())
    answer = resolve(resolver, "what temperature")

    assert answer.response_text == APOLOGY_REPLY
    assert answer.step_delta == 0
    assert events_of(captured_logs, "RESOLVER_INTERNAL_ERROR")
