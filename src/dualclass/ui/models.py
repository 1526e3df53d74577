"""Data models for Dual Class lesson view state."""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

LogType = Literal["info", "success", "error", "api-call", "api-response"]
LevelStatus = Literal["LOCKED", "UNLOCKED", "COMPLETED"]
QuizOutcome = Literal["correct", "incorrect"]

LOG_DETAIL_MAX_LENGTH = 200


@dataclass(frozen=True)
class LogEntry:
    """One entry in the system log panel.

    ``details`` carries truncated prompt or response text; ``metadata`` holds
    free-form values such as response times.
    """

    id: str
    timestamp: int
    type: LogType
    message: str
    details: str | None = None
    metadata: dict[str, Any] | None = None


def truncate_text(text: str, max_length: int = LOG_DETAIL_MAX_LENGTH) -> str:
    """Cut ``text`` to ``max_length`` characters, appending ``...`` if cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def create_log(
    type: LogType,
    message: str,
    details: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> LogEntry:
    """Build a timestamped log entry with a unique id."""
    now = int(time.time() * 1000)
    return LogEntry(
        id=f"{now}-{random.random()}",
        timestamp=now,
        type=type,
        message=message,
        details=details,
        metadata=metadata,
    )


@dataclass
class LessonViewState:
    """Session state for one learner's lesson view.

    Each client session owns its own instance.  The reducers in
    :mod:`dualclass.ui.state` never mutate an instance in place; they return
    a copy with the changed fields.
    """

    # Lesson payload returned by /api/generate (with imageUrl and _meta).
    result: dict[str, Any] | None = None
    lesson_step_mode: str = "fixed"

    # Multiple-choice and free-text quiz
    selected_option_id: str | None = None
    show_result: bool = False
    quiz_result: QuizOutcome | None = None

    # Timeline, modals
    active_step: int | None = None
    rosetta_open: bool = False
    logs_open: bool = False

    # Error mirror
    is_generating_error_mirror: bool = False
    error_mirror_version: int = 0

    # Badge persists across concept changes within a session
    badge_unlocked: bool = False
    badge_animating: bool = False

    system_logs: tuple[LogEntry, ...] = ()

    @property
    def has_result(self) -> bool:
        """True once a lesson has been loaded."""
        return self.result is not None

    def __repr__(self) -> str:
        return (
            f"LessonViewState(has_result={self.has_result}, "
            f"selected={self.selected_option_id!r}, show_result={self.show_result}, "
            f"logs={len(self.system_logs)})"
        )


@dataclass
class QuestLevel:
    """One level on the quest map."""

    id: int
    title: str
    topic: str
    thumbnail: str
    status: LevelStatus
    description: str


@dataclass
class Curriculum:
    """An uploaded source broken into sequential quest levels."""

    source_title: str
    persona: str
    levels: list[QuestLevel] = field(default_factory=list)

    def level(self, level_id: int) -> QuestLevel | None:
        """Return the level with ``level_id``, or None."""
        for level in self.levels:
            if level.id == level_id:
                return level
        return None


def mock_curriculum() -> Curriculum:
    """Demo curriculum shown after a source upload."""
    return Curriculum(
        source_title="Stanford CS224n: Chapter 8",
        persona="Gamer",
        levels=[
            QuestLevel(
                id=1,
                title="Level 1: The Healer's Dilemma",
                topic="Self-Attention (Q, K, V)",
                thumbnail="/assets/gamer_hero_thumb.png",
                status="UNLOCKED",
                description="Learn how tokens value each other using support mechanics.",
            ),
            QuestLevel(
                id=2,
                title="Level 2: The Raid Coordination",
                topic="Multi-Head Attention",
                thumbnail="/assets/gamer_raid_thumb.png",
                status="LOCKED",
                description="Parallelize your attention channels to track multiple threats at once.",
            ),
            QuestLevel(
                id=3,
                title="Level 3: The Fog of War",
                topic="Masked Attention (Decoder)",
                thumbnail="/assets/gamer_fog_thumb.png",
                status="LOCKED",
                description="Prevent future token leakage using vision masking techniques.",
            ),
        ],
    )
