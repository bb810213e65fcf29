"""
Local cooking knowledge base.

Last line of the resolution order: used when the remote reasoning service
fails. Entries are scored by counted keyword hits against the lowercased
transcript; the highest score wins and the first entry wins ties.
"""

from __future__ import annotations

from dataclasses import dataclass

from resolver.answer import AnswerSource, ResolvedAnswer


@dataclass(frozen=True)
class KnowledgeEntry:
    keywords: tuple[str, ...]
    response: str


TEMPERATURE_REPLY = (
    "For most baking, 350°F (175°C) is a good starting temperature. "
    "For meats, use a food thermometer: chicken should reach 165°F (74°C), "
    "beef 145°F (63°C) for medium-rare, and fish 145°F (63°C)."
)

HELP_REPLY = (
    "I'm here to help with cooking questions! Ask me about temperatures, "
    "timing, substitutions, seasoning, or any cooking technique. "
    "What would you like to know?"
)

THANKS_REPLY = "You're welcome! Happy cooking!"

UNKNOWN_REPLY = (
    "I'm not sure about that specific cooking question. Try asking about "
    "temperatures, timing, substitutions, or cooking techniques. "
    "What would you like to know?"
)

APOLOGY_REPLY = "Sorry, I had trouble with that. Could you say it again?"


DEFAULT_ENTRIES: tuple[KnowledgeEntry, ...] = (
    KnowledgeEntry(
        ("temperature", "temp", "degrees", "fahrenheit", "celsius"),
        TEMPERATURE_REPLY,
    ),
    KnowledgeEntry(
        ("time", "how long", "duration", "minutes", "hours"),
        "Cooking times vary by recipe and ingredient size. As a general rule: "
        "vegetables take 5-15 minutes, chicken breasts 20-30 minutes, and roasts "
        "20 minutes per pound plus 20 minutes. Always check for doneness!",
    ),
    KnowledgeEntry(
        ("substitute", "replacement", "instead of", "alternative"),
        "Common substitutions: buttermilk = milk + lemon juice, baking powder = "
        "baking soda + cream of tartar, eggs = flax seeds + water, butter = oil "
        "or applesauce. Check online for specific ratios!",
    ),
    KnowledgeEntry(
        ("seasoning", "spice", "herb", "flavor", "taste"),
        "Start with salt and pepper, then add herbs like basil, oregano, or thyme. "
        "For heat, try cayenne or chili powder. Remember: you can always add more, "
        "but you can't take it out!",
    ),
    KnowledgeEntry(
        ("burn", "burnt", "overcook", "crispy", "brown"),
        "If food is burning, reduce heat and add liquid. For browning, use "
        "medium-high heat and don't overcrowd the pan. Burnt food can't be saved, "
        "so watch carefully!",
    ),
    KnowledgeEntry(
        ("undercook", "raw", "pink", "soft", "doughy"),
        "Undercooked food can be dangerous. Meats should reach safe internal "
        "temperatures. For baked goods, insert a toothpick - it should come out "
        "clean. When in doubt, cook a bit longer!",
    ),
    KnowledgeEntry(
        ("measure", "cup", "tablespoon", "teaspoon", "ounces"),
        "Use proper measuring tools: liquid measuring cups for liquids, dry "
        "measuring cups for dry ingredients. Level off dry ingredients with a "
        "straight edge. 1 cup = 16 tablespoons = 48 teaspoons.",
    ),
    KnowledgeEntry(
        ("preheat", "oven", "heat", "warm"),
        "Always preheat your oven for 10-15 minutes before baking. This ensures "
        "even cooking and proper rise. Don't put food in until the oven reaches "
        "the right temperature!",
    ),
    KnowledgeEntry(
        ("grease", "oil", "butter", "spray", "pan"),
        "Grease pans with butter, oil, or cooking spray to prevent sticking. For "
        "baking, you can also use parchment paper. Make sure to cover all "
        "surfaces evenly!",
    ),
    KnowledgeEntry(
        ("rest", "sit", "wait", "cool", "settle"),
        "Let meat rest for 5-10 minutes after cooking to redistribute juices. Let "
        "baked goods cool for 10-15 minutes before cutting. This improves texture "
        "and flavor!",
    ),
)


class KnowledgeBase:
    """Keyword-scored catalogue of canned cooking answers."""

    def __init__(self, entries: tuple[KnowledgeEntry, ...] = DEFAULT_ENTRIES) -> None:
        self._entries: list[KnowledgeEntry] = list(entries)

    def add_entry(self, keywords: list[str], response: str) -> None:
        self._entries.append(
            KnowledgeEntry(tuple(k.lower() for k in keywords), response)
        )

    def score(self, text: str) -> list[int]:
        """Keyword hit count per entry, in catalogue order."""
        lowered = text.lower()
        return [
            sum(1 for keyword in entry.keywords if keyword in lowered)
            for entry in self._entries
        ]

    def answer(self, transcript: str) -> ResolvedAnswer:
        """Best entry by score, else a generic reply. step_delta is always 0."""
        lowered = transcript.lower()

        best: KnowledgeEntry | None = None
        best_score = 0
        for entry, score in zip(self._entries, self.score(lowered)):
            if score > best_score:
                best, best_score = entry, score

        if best is not None:
            return ResolvedAnswer(best.response, 0, AnswerSource.FALLBACK)

        if any(word in lowered for word in ("help", "what", "how")):
            return ResolvedAnswer(HELP_REPLY, 0, AnswerSource.FALLBACK)

        if "thank" in lowered:
            return ResolvedAnswer(THANKS_REPLY, 0, AnswerSource.FALLBACK)

        return ResolvedAnswer(UNKNOWN_REPLY, 0, AnswerSource.FALLBACK)
