"""State transitions for the Dual Class lesson view.

This module holds the reducers that move a :class:`LessonViewState` from one
step of the lesson flow to the next (lesson loaded, option picked, error
mirror merged, ...) together with read-only queries over a state.  Every
reducer returns a new object and leaves its argument untouched, so a client
can keep the previous state for undo or diffing.

Curriculum progress (quest map levels) follows the same rule.
"""

import logging
from dataclasses import replace
from typing import Any

from dualclass.core.prompt_builder import LESSON_STEP_MODES

from .models import (
    Curriculum,
    LessonViewState,
    LogType,
    QuestLevel,
    create_log,
)
from .validation import is_correct_option, quiz_options_of, validate_free_text_answer

logger = logging.getLogger(__name__)

ERROR_MIRROR_FIELDS = ("error_states", "fallback_error", "why_text", "why_imageUrl")

# Images served from the fixture set rather than written by the image model.
_GENERATED_IMAGE_MARKER = "/images/generated/"


# ---------------------------------------------------------------------------
# Lesson reducers
# ---------------------------------------------------------------------------


def apply_result(state: LessonViewState, result: dict[str, Any]) -> LessonViewState:
    """Show a freshly generated lesson.

    Clears the quiz, the open timeline step and any pending error mirror.
    Logs and the badge survive so that they persist across concepts.
    """
    return replace(
        state,
        result=result,
        selected_option_id=None,
        show_result=False,
        quiz_result=None,
        active_step=None,
        rosetta_open=False,
        is_generating_error_mirror=False,
    )


def _unlock_badge(state: LessonViewState) -> LessonViewState:
    if state.badge_unlocked:
        return state
    logger.info("Dual Class badge unlocked.")
    return replace(state, badge_unlocked=True, badge_animating=True)


def select_option(state: LessonViewState, option_id: str) -> LessonViewState:
    """Pick a multiple-choice answer.

    The first pick is final: once the result is shown, further picks are
    ignored and the same state is returned.
    """
    if state.show_result:
        return state

    correct = is_correct_option(quiz_options_of(state.result), option_id)
    state = replace(
        state,
        selected_option_id=option_id,
        show_result=True,
        quiz_result="correct" if correct else "incorrect",
    )
    return _unlock_badge(state) if correct else state


def submit_free_text_answer(state: LessonViewState, answer: str) -> LessonViewState:
    """Check a typed answer against the lesson's ``quiz_answer``."""
    expected = (state.result or {}).get("quiz_answer") or ""
    correct = validate_free_text_answer(answer, expected)
    state = replace(state, quiz_result="correct" if correct else "incorrect")
    return _unlock_badge(state) if correct else state


def reset_quiz(state: LessonViewState) -> LessonViewState:
    """Forget the learner's answer so the quiz can be retried."""
    return replace(state, selected_option_id=None, show_result=False, quiz_result=None)


def finish_badge_animation(state: LessonViewState) -> LessonViewState:
    """Stop the unlock animation; the badge itself stays unlocked."""
    return replace(state, badge_animating=False)


def set_lesson_step_mode(state: LessonViewState, mode: str) -> LessonViewState:
    """Choose fixed or dynamic lesson steps for the next generation.

    Unknown modes are ignored.
    """
    if mode not in LESSON_STEP_MODES:
        logger.warning("Ignoring unknown lesson step mode %r.", mode)
        return state
    return replace(state, lesson_step_mode=mode)


def generate_request(state: LessonViewState, concept: str, persona: str) -> dict[str, Any]:
    """Body for ``POST /api/generate`` using the session's step mode."""
    return {"concept": concept, "persona": persona, "lessonStepMode": state.lesson_step_mode}


def toggle_step(state: LessonViewState, step_number: int) -> LessonViewState:
    """Open a timeline step, or collapse it if it is already open."""
    if state.active_step == step_number:
        return replace(state, active_step=None)
    return replace(state, active_step=step_number)


def toggle_rosetta(state: LessonViewState) -> LessonViewState:
    return replace(state, rosetta_open=not state.rosetta_open)


def toggle_logs(state: LessonViewState) -> LessonViewState:
    return replace(state, logs_open=not state.logs_open)


def begin_error_mirror(state: LessonViewState) -> LessonViewState:
    """Mark an error-mirror request as in flight."""
    return replace(state, is_generating_error_mirror=True)


def merge_error_mirror(
    state: LessonViewState, error_mirror: dict[str, Any] | None
) -> LessonViewState:
    """Fold an error-mirror response into the current lesson.

    Only the error-mirror fields are copied onto the lesson; everything else
    in ``error_mirror`` is ignored.  ``None`` means the request failed: the
    in-flight flag is cleared and the lesson is left as it was.  Each
    successful merge bumps ``error_mirror_version``.
    """
    if error_mirror is None or state.result is None:
        return replace(state, is_generating_error_mirror=False)

    merged = dict(state.result)
    for key in ERROR_MIRROR_FIELDS:
        if key in error_mirror:
            merged[key] = error_mirror[key]

    return replace(
        state,
        result=merged,
        is_generating_error_mirror=False,
        error_mirror_version=state.error_mirror_version + 1,
    )


def add_log(
    state: LessonViewState,
    type: LogType,
    message: str,
    details: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> LessonViewState:
    """Append an entry to the system log."""
    entry = create_log(type, message, details, metadata)
    return replace(state, system_logs=state.system_logs + (entry,))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def is_answer_correct(state: LessonViewState) -> bool:
    """True if the selected multiple-choice option is the correct one."""
    return is_correct_option(quiz_options_of(state.result), state.selected_option_id)


def resolve_error_state(state: LessonViewState, option_id: str | None) -> dict[str, Any] | None:
    """Return the explanation to show for a wrong answer.

    Looks for the error state whose ``wrong_option_id`` matches, then falls
    back to the lesson's ``fallback_error``.

    Returns:
        The matching error state, the fallback error, or None when the
        lesson carries neither.
    """
    result = state.result or {}
    for error_state in result.get("error_states") or []:
        if error_state.get("wrong_option_id") == option_id:
            return error_state
    return result.get("fallback_error") or None


def active_step(state: LessonViewState) -> dict[str, Any] | None:
    """The lesson step currently expanded in the timeline, if any."""
    if state.active_step is None or state.result is None:
        return None
    for step in state.result.get("lesson_steps") or []:
        if step.get("step_number") == state.active_step:
            return step
    return None


def is_cached_result(result: dict[str, Any] | None) -> bool:
    """Whether a lesson came from a fixture rather than live generation.

    ``_meta.cached`` is authoritative.  Older payloads without ``_meta`` are
    classified by their image URL: anything that is not a generated image is
    assumed to be a fixture.
    """
    if not result:
        return False

    meta = result.get("_meta")
    if meta is not None:
        return bool(meta.get("cached"))

    image_url = result.get("imageUrl") or ""
    return bool(image_url) and _GENERATED_IMAGE_MARKER not in image_url


# ---------------------------------------------------------------------------
# Curriculum progress
# ---------------------------------------------------------------------------


def can_select_level(level: QuestLevel) -> bool:
    """Locked levels cannot be opened."""
    return level.status != "LOCKED"


def complete_level(curriculum: Curriculum, level_id: int) -> Curriculum:
    """Mark a level completed and unlock the next locked level after it.

    Unknown ids leave the curriculum unchanged.
    """
    index = next((i for i, lvl in enumerate(curriculum.levels) if lvl.id == level_id), None)
    if index is None:
        logger.warning("complete_level: unknown level id %s", level_id)
        return curriculum

    levels = list(curriculum.levels)
    levels[index] = replace(levels[index], status="COMPLETED")
    for i in range(index + 1, len(levels)):
        if levels[i].status == "LOCKED":
            levels[i] = replace(levels[i], status="UNLOCKED")
            logger.info("Unlocked level %s.", levels[i].id)
            break

    return replace(curriculum, levels=levels)
