# pylint: disable=missing-module-docstring,missing-function-docstring
import pytest

from context.recipe import RecipeContext
from resolver.answer import AnswerSource
from resolver.rules import extract_step_count, match_navigation


# Six steps, user on step 3 (index 2)
CAKE = RecipeContext(
    title="Classic Cake",
    steps=("preheat", "grease", "cream", "beat", "fold", "bake"),
    current_step_index=2,
)


@pytest.mark.parametrize(
    ("transcript", "delta"),
    [
        ("next step", 1),
        ("Next step please", 1),
        ("skip 2 steps", 2),
        ("skip two steps", 2),
        ("go back", -1),
        ("go back 2 steps", -2),
        ("Go back three steps", -3),
        ("previous step", -1),
        ("first step", -2),
        ("take me to the beginning", -2),
        ("last step", 3),
        ("jump to step 5", 2),
        ("go to 1", -2),
        ("step three", 0),
        ("row 6", 3),
    ],
)
def test_navigation_rules(transcript: str, delta: int) -> None:
    answer = match_navigation(transcript, CAKE)

    assert answer is not None
    assert answer.step_delta == delta
    assert answer.source is AnswerSource.RULE
    assert answer.silent is True


@pytest.mark.parametrize(
    "transcript",
    [
        "what temperature should the oven be",
        "how long do I bake it",
        "thank you",
        "blend the butter and sugar",
        "",
    ],
)
def test_questions_fall_through(transcript: str) -> None:
    assert match_navigation(transcript, CAKE) is None


def test_relative_rules_work_without_recipe():
    answer = match_navigation("next step", None)
    assert answer is not None
    assert answer.step_delta == 1


def test_absolute_rules_need_a_recipe():
    assert match_navigation("first step", None) is None
    assert match_navigation("jump to step 4", None) is None


def test_forward_rule_wins_over_goto():
    # "skip ... step" is checked before "step <N>"
    answer = match_navigation("skip to step 4", CAKE)
    assert answer is not None
    assert answer.step_delta == 4


def test_extract_step_count_defaults_to_one():
    assert extract_step_count("next step") == 1
    assert extract_step_count("skip 3 steps") == 3
    assert extract_step_count("go back twelve") == 12
