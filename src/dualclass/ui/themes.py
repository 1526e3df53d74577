"""Persona and concept theming rules.

Emoji and fallback artwork are chosen with prioritised rule tables: ordered
``(keywords, value)`` pairs evaluated top to bottom, the first rule with a
keyword contained in the lowercased text wins, and a default applies when
nothing matches.  Order matters, e.g. "fire" must stay below "chef" so that
"Fire-Breathing Chef" resolves to the chef theme.
"""

from __future__ import annotations

from collections.abc import Sequence

Rule = tuple[tuple[str, ...], str]

PERSONA_EMOJI_RULES: tuple[Rule, ...] = (
    (("chef", "cook", "baker"), "👨‍🍳"),
    (("captain", "pilot", "astronaut"), "🧑‍✈️"),
    (("detective", "investigator"), "🕵️"),
    (("gamer", "game"), "🎮"),
    (("musician", "music", "guitar"), "🎸"),
    (("surfer", "surf"), "🏄"),
    (("firefighter", "fire"), "🚒"),
    (("teacher", "professor"), "👨‍🏫"),
)
DEFAULT_PERSONA_EMOJI = "👤"

CONCEPT_EMOJI_RULES: tuple[Rule, ...] = (
    (("ai", "neural", "attention"), "🧠"),
    (("docker", "k8s", "kubernetes", "container"), "🐳"),
    (("blockchain", "crypto"), "🔗"),
    (("security", "encryption"), "🛡️"),
    (("database", "sql"), "💾"),
    (("network", "api"), "🌐"),
)
DEFAULT_CONCEPT_EMOJI = "💻"

# Persona family used to pick fixture artwork.
PERSONA_THEME_RULES: tuple[Rule, ...] = (
    (("chef", "cook", "baker"), "chef"),
    (("captain", "pilot", "astronaut"), "captain"),
)
DEFAULT_PERSONA_THEME = "chef"

_CIRCLED_NUMBERS = "①②③④⑤⑥⑦⑧⑨"


def resolve_rule(rules: Sequence[Rule], text: str, default: str) -> str:
    """Return the value of the first rule matching ``text``.

    Args:
        rules: Ordered ``(keywords, value)`` pairs.
        text: Text to classify; compared case-insensitively.
        default: Value returned when no rule matches.
    """
    normalized = text.lower()
    for keywords, value in rules:
        if any(keyword in normalized for keyword in keywords):
            return value
    return default


def persona_emoji(persona: str) -> str:
    """Emoji shown next to a persona."""
    return resolve_rule(PERSONA_EMOJI_RULES, persona, DEFAULT_PERSONA_EMOJI)


def concept_emoji(concept: str) -> str:
    """Emoji shown next to a concept."""
    return resolve_rule(CONCEPT_EMOJI_RULES, concept, DEFAULT_CONCEPT_EMOJI)


def persona_theme(persona: str) -> str:
    """Artwork family (``chef`` or ``captain``) for a persona."""
    return resolve_rule(PERSONA_THEME_RULES, persona, DEFAULT_PERSONA_THEME)


def circled_number(number: int) -> str:
    """Render 1-9 as a circled digit; other numbers fall back to plain digits."""
    if 1 <= number <= len(_CIRCLED_NUMBERS):
        return _CIRCLED_NUMBERS[number - 1]
    return str(number)
