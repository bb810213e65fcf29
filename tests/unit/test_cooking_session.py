# pylint: disable=missing-module-docstring,missing-function-docstring
import pytest

from context.recipe import RecipeContext
from resolver.rules import match_navigation
from session.cooking_session import CookingSession


def cake_session(cake_payload) -> CookingSession:
    return CookingSession.from_context(RecipeContext.from_payload(cake_payload))


def test_payload_current_step_is_one_based(cake_payload):
    session = cake_session(cake_payload)

    assert session.current_step_index == 2
    assert session.step_count == 6
    snapshot = session.snapshot()
    assert snapshot.current_step_one_based == 3
    assert snapshot.current_step_text == "Cream the butter and sugar."


def test_go_back_two_steps_lands_on_first(cake_payload):
    session = cake_session(cake_payload)
    answer = match_navigation("go back 2 steps", session.snapshot())

    assert answer is not None
    assert session.apply_step_delta(answer.step_delta) == 0


def test_jump_to_step_five(cake_payload):
    session = cake_session(cake_payload)
    answer = match_navigation("jump to step 5", session.snapshot())

    assert answer is not None
    assert session.apply_step_delta(answer.step_delta) == 4
    assert session.snapshot().current_step_text == "Fold in the flour."


@pytest.mark.parametrize(("delta", "index"), [(-10, 0), (10, 5), (3, 5), (-2, 0)])
def test_deltas_are_clamped(cake_payload, delta: int, index: int) -> None:
    session = cake_session(cake_payload)
    assert session.apply_step_delta(delta) == index


def test_empty_recipe_stays_at_zero():
    session = CookingSession(title="Nothing", steps=[])
    assert session.apply_step_delta(3) == 0
    assert session.snapshot().current_step_text == ""


def test_payload_current_step_is_clamped(cake_payload):
    recipe = RecipeContext.from_payload({**cake_payload, "current_step": 99})
    assert recipe.current_step_index == 5


@pytest.mark.parametrize("steps", [None, "mix", ["mix", 2]])
def test_payload_requires_string_steps(steps) -> None:
    with pytest.raises(ValueError):
        RecipeContext.from_payload({"title": "Bad", "steps": steps})


def test_snapshot_payload_reports_one_based_step(cake_payload):
    payload = cake_session(cake_payload).snapshot().to_payload()

    assert payload["title"] == "Classic Cake"
    assert payload["current_step"] == 3
    assert payload["step_count"] == 6
