"""
Prompt serialization for the remote reasoning service.

Converts system prompt + recipe snapshot + recent turns + the current
transcript into chat-completion messages.

Non-responsibilities:
- No truncation of turns (ConversationContext owns that)
- No network calls
"""

from __future__ import annotations

import json

from constants import MAX_RECIPE_CONTEXT_CHARS
from context.recipe import RecipeContext


def serialize_recipe(recipe: RecipeContext | None) -> str:
    """
    JSON blob describing the recipe, capped at MAX_RECIPE_CONTEXT_CHARS.

    The current step is reported 1-based.
    """
    if recipe is None:
        return ""
    blob = json.dumps({"recipe": recipe.to_payload()}, ensure_ascii=False)
    return blob[:MAX_RECIPE_CONTEXT_CHARS]


def serialize_for_reasoning(
    *,
    system_prompt: str,
    recipe: RecipeContext | None,
    history: list[dict[str, str]],
    user_text: str,
) -> list[dict[str, str]]:
    """
    Output format:
    [
        {"role": "system", "content": "<prompt>\\n\\nContext JSON:\\n{...}"},
        ...recent turns...,
        {"role": "user", "content": "<current transcript>"},
    ]
    """
    system_content = system_prompt
    if recipe is not None:
        system_content += (
            f"\n\nThe user is on step {recipe.current_step_one_based}"
            f" of {recipe.step_count}."
            f"\n\nContext JSON:\n{serialize_recipe(recipe)}"
        )

    messages: list[dict[str, str]] = [{"role": "system", "content": system_content}]
    messages.extend(history)
    messages.append({"role": "user", "content": user_text})
    return messages
