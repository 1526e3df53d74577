"""Quiz answer checking for the lesson view."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from dualclass.core.prompt_builder import field_value

logger = logging.getLogger(__name__)

# Shortest user answer accepted as a partial match.
MIN_PARTIAL_ANSWER_LENGTH = 3


def _normalize(text: str) -> str:
    return text.lower().strip()


def validate_free_text_answer(user_answer: str, correct_answer: str) -> bool:
    """Check a typed quiz answer against the expected answer.

    Comparison is case-insensitive and ignores surrounding whitespace.  An
    exact match passes, and so does either string containing the other as
    long as the user's answer is at least three characters long.

    Args:
        user_answer: What the learner typed.
        correct_answer: The lesson's ``quiz_answer``.

    Returns:
        True if the answer is accepted.
    """
    user = _normalize(user_answer)
    correct = _normalize(correct_answer)

    if user == correct:
        return True

    if len(user) < MIN_PARTIAL_ANSWER_LENGTH:
        return False

    return user in correct or correct in user


def correct_option(quiz_options: Sequence[Any]) -> Any | None:
    """Return the quiz option flagged correct, or None."""
    for option in quiz_options:
        if field_value(option, "is_correct", False):
            return option
    return None


def is_correct_option(quiz_options: Sequence[Any], option_id: str | None) -> bool:
    """True if ``option_id`` names the correct quiz option."""
    if option_id is None:
        return False
    option = correct_option(quiz_options)
    return option is not None and field_value(option, "id") == option_id


def quiz_options_of(result: Mapping[str, Any] | None) -> list[Any]:
    """Quiz options of a lesson payload, empty when there is no lesson."""
    if not result:
        return []
    return list(result.get("quiz_options") or [])
