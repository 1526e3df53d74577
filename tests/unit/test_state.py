"""Unit tests for lesson view state transitions."""

import pytest

from dualclass.ui.models import LessonViewState, mock_curriculum
from dualclass.ui.state import (
    active_step,
    add_log,
    apply_result,
    begin_error_mirror,
    can_select_level,
    complete_level,
    finish_badge_animation,
    generate_request,
    is_answer_correct,
    is_cached_result,
    merge_error_mirror,
    reset_quiz,
    resolve_error_state,
    select_option,
    set_lesson_step_mode,
    submit_free_text_answer,
    toggle_logs,
    toggle_rosetta,
    toggle_step,
)


@pytest.fixture
def loaded_state(sample_lesson) -> LessonViewState:
    """State with the sample lesson applied."""
    return apply_result(LessonViewState(), sample_lesson)


class TestApplyResult:
    """Tests for apply_result."""

    def test_sets_result_and_clears_quiz(self, sample_lesson):
        state = LessonViewState(selected_option_id="b", show_result=True, active_step=2)

        new_state = apply_result(state, sample_lesson)

        assert new_state.result is sample_lesson
        assert new_state.selected_option_id is None
        assert new_state.show_result is False
        assert new_state.active_step is None

    def test_keeps_badge_and_logs(self, sample_lesson):
        state = add_log(LessonViewState(badge_unlocked=True), "info", "hello")

        new_state = apply_result(state, sample_lesson)

        assert new_state.badge_unlocked is True
        assert len(new_state.system_logs) == 1

    def test_does_not_mutate_input(self, sample_lesson):
        state = LessonViewState()
        apply_result(state, sample_lesson)
        assert state.result is None


class TestSelectOption:
    """Tests for select_option."""

    def test_correct_answer_unlocks_badge(self, loaded_state):
        state = select_option(loaded_state, "a")

        assert state.quiz_result == "correct"
        assert state.show_result is True
        assert state.badge_unlocked is True
        assert state.badge_animating is True
        assert is_answer_correct(state)

    def test_wrong_answer(self, loaded_state):
        state = select_option(loaded_state, "c")

        assert state.quiz_result == "incorrect"
        assert state.badge_unlocked is False
        assert not is_answer_correct(state)

    def test_second_pick_is_ignored(self, loaded_state):
        first = select_option(loaded_state, "c")
        second = select_option(first, "a")

        assert second is first
        assert second.selected_option_id == "c"

    def test_reset_allows_retry(self, loaded_state):
        state = reset_quiz(select_option(loaded_state, "c"))
        state = select_option(state, "a")
        assert state.quiz_result == "correct"


class TestFreeTextAnswer:
    """Tests for submit_free_text_answer."""

    def test_partial_answer_accepted(self, loaded_state):
        state = submit_free_text_answer(loaded_state, "  container  ")
        assert state.quiz_result == "correct"
        assert state.badge_unlocked is True

    def test_wrong_answer(self, loaded_state):
        assert submit_free_text_answer(loaded_state, "kernel").quiz_result == "incorrect"


class TestToggles:
    """Tests for the timeline and modal toggles."""

    def test_toggle_step_opens_and_collapses(self, loaded_state):
        opened = toggle_step(loaded_state, 2)
        assert opened.active_step == 2
        assert active_step(opened)["title"] == "Travel"

        assert toggle_step(opened, 2).active_step is None
        assert toggle_step(opened, 3).active_step == 3

    def test_active_step_none_without_selection(self, loaded_state):
        assert active_step(loaded_state) is None

    def test_rosetta_and_logs(self):
        state = toggle_rosetta(LessonViewState())
        assert state.rosetta_open is True
        assert toggle_rosetta(state).rosetta_open is False
        assert toggle_logs(state).logs_open is True


class TestLessonStepMode:
    """Tests for the step-mode selector and the request it feeds."""

    def test_default_mode_in_request(self):
        body = generate_request(LessonViewState(), "Docker", "Surfer")
        assert body == {"concept": "Docker", "persona": "Surfer", "lessonStepMode": "fixed"}

    def test_switch_to_dynamic(self):
        state = set_lesson_step_mode(LessonViewState(), "dynamic")
        assert state.lesson_step_mode == "dynamic"
        assert generate_request(state, "Docker", "Surfer")["lessonStepMode"] == "dynamic"

    def test_unknown_mode_ignored(self):
        state = LessonViewState()
        assert set_lesson_step_mode(state, "random") is state


class TestBadgeAnimation:
    """The unlock animation ends without re-locking the badge."""

    def test_finish_animation(self, loaded_state):
        state = select_option(loaded_state, "a")
        assert state.badge_animating is True

        finished = finish_badge_animation(state)

        assert finished.badge_animating is False
        assert finished.badge_unlocked is True


class TestErrorMirror:
    """Tests for begin_error_mirror, merge_error_mirror and resolve_error_state."""

    def test_merge_copies_mirror_fields(self, loaded_state, sample_error_mirror):
        state = begin_error_mirror(loaded_state)
        assert state.is_generating_error_mirror is True

        merged = merge_error_mirror(state, {**sample_error_mirror, "ignored": 1})

        assert merged.is_generating_error_mirror is False
        assert merged.error_mirror_version == 1
        assert merged.result["why_imageUrl"] == sample_error_mirror["why_imageUrl"]
        assert "ignored" not in merged.result
        assert "error_states" not in loaded_state.result

    def test_failed_mirror_clears_flag_only(self, loaded_state):
        merged = merge_error_mirror(begin_error_mirror(loaded_state), None)

        assert merged.is_generating_error_mirror is False
        assert merged.error_mirror_version == 0
        assert merged.result == loaded_state.result

    def test_resolve_matching_state(self, loaded_state, sample_error_mirror):
        state = merge_error_mirror(loaded_state, sample_error_mirror)
        assert resolve_error_state(state, "c")["wrong_option_id"] == "c"

    def test_resolve_falls_back(self, loaded_state, sample_error_mirror):
        state = merge_error_mirror(loaded_state, sample_error_mirror)
        assert resolve_error_state(state, "q") == sample_error_mirror["fallback_error"]

    def test_resolve_none_without_mirror(self, loaded_state):
        assert resolve_error_state(loaded_state, "b") is None


class TestIsCachedResult:
    """Tests for is_cached_result."""

    def test_meta_is_authoritative(self):
        result = {"imageUrl": "/images/chef_attention.png", "_meta": {"cached": False}}
        assert is_cached_result(result) is False

    def test_meta_cached(self):
        result = {"imageUrl": "/images/generated/generated_1.png", "_meta": {"cached": True}}
        assert is_cached_result(result) is True

    def test_url_guess_without_meta(self):
        assert is_cached_result({"imageUrl": "/images/chef_attention.png"}) is True
        assert is_cached_result({"imageUrl": "/images/generated/generated_1.png"}) is False

    def test_nothing_to_go_on(self):
        assert is_cached_result(None) is False
        assert is_cached_result({"persona": "Chef"}) is False


class TestLogs:
    """Tests for add_log."""

    def test_appends_without_mutating(self):
        state = LessonViewState()
        new_state = add_log(state, "api-call", "POST /api/generate", details="body")

        assert state.system_logs == ()
        assert new_state.system_logs[0].type == "api-call"
        assert new_state.system_logs[0].details == "body"


class TestCurriculum:
    """Tests for complete_level and can_select_level."""

    def test_complete_first_level_unlocks_second(self):
        curriculum = mock_curriculum()

        updated = complete_level(curriculum, 1)

        assert [lvl.status for lvl in updated.levels] == ["COMPLETED", "UNLOCKED", "LOCKED"]
        assert curriculum.levels[0].status == "UNLOCKED"

    def test_complete_last_level(self):
        curriculum = complete_level(complete_level(mock_curriculum(), 1), 2)
        updated = complete_level(curriculum, 3)
        assert [lvl.status for lvl in updated.levels] == ["COMPLETED", "COMPLETED", "COMPLETED"]

    def test_unknown_level_is_noop(self):
        curriculum = mock_curriculum()
        assert complete_level(curriculum, 42) is curriculum

    def test_locked_levels_cannot_be_selected(self):
        curriculum = mock_curriculum()
        assert can_select_level(curriculum.levels[0])
        assert not can_select_level(curriculum.levels[1])
        assert curriculum.level(3).status == "LOCKED"
