"""Pydantic request and response models for the Dual Class API.

These models define the JSON schema for every API endpoint.  FastAPI uses
the request models for body parsing and OpenAPI documentation, and the
generation pipeline validates model output against the response models so
that structurally broken lessons never reach a client.

Wire names follow the frontend contract: snake_case for lesson content,
with the camelCase exceptions ``lessonStepMode``, ``imageUrl``,
``why_imageUrl`` and ``responseTime``.  All models accept either the field
name or its alias on input.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``.
ErrorMirrorContext
    Payload for ``POST /api/generate-error-mirror``.
MetaphorResult
    A complete lesson: metaphor text, lesson steps, Rosetta Stone mapping
    pairs, visual callouts and a 4-option quiz.
ErrorState
    One misconception explanation (also used for the generic fallback).
ErrorMirrorResult
    Response body of ``POST /api/generate-error-mirror``.
ResponseMeta
    The ``_meta`` block attached to every ``/api/generate`` response.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CalloutPosition = Literal[
    "top-left",
    "top-center",
    "top-right",
    "center-left",
    "center",
    "center-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
]

LessonStepMode = Literal["fixed", "dynamic"]

QUIZ_OPTION_COUNT = 4
VISUAL_CALLOUT_COUNT = 3


# ---------------------------------------------------------------------------
# Requests.
# ---------------------------------------------------------------------------


class GenerateRequest(BaseModel):
    """Request body for ``POST /api/generate``.

    ``concept`` and ``persona`` are optional at the schema level so that the
    route can answer a missing value with the documented 400 message rather
    than a generic schema error.

    Attributes:
        concept: Technical concept to explain.
        persona: Persona whose domain supplies the metaphor.
        mode: ``"fixed"`` (exactly 3 lesson steps) or ``"dynamic"`` (3-5).
            Sent as ``lessonStepMode``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    concept: str | None = Field(default=None, description="Technical concept to explain.")
    persona: str | None = Field(default=None, description="Persona supplying the metaphor.")
    mode: LessonStepMode = Field(
        default="dynamic",
        alias="lessonStepMode",
        description="Lesson step mode: 'fixed' (3 steps) or 'dynamic' (3-5 steps).",
    )

    def is_complete(self) -> bool:
        """Whether both concept and persona carry non-blank text."""
        return bool(self.concept and self.concept.strip()) and bool(
            self.persona and self.persona.strip()
        )


class QuizOption(BaseModel):
    """One multiple-choice quiz option."""

    id: str = Field(..., pattern=r"^[a-z]$", description="Single lowercase letter.")
    text: str
    is_correct: bool = False


class ErrorMirrorContext(BaseModel):
    """Request body for ``POST /api/generate-error-mirror``.

    Describes a finished quiz.  ``persona``, ``concept``, ``quiz_question``
    and ``quiz_options`` are required by the route; the remaining fields
    only enrich the prompt.
    """

    model_config = ConfigDict(frozen=True)

    persona: str | None = None
    concept: str | None = None
    metaphor_logic: str | None = None
    quiz_question: str | None = None
    quiz_answer: str | None = None
    quiz_options: list[QuizOption] | None = None

    def is_complete(self) -> bool:
        """Whether every field the route requires is present and non-empty."""
        return (
            bool(self.persona and self.persona.strip())
            and bool(self.concept and self.concept.strip())
            and bool(self.quiz_question and self.quiz_question.strip())
            and bool(self.quiz_options)
        )

    @property
    def wrong_options(self) -> list[QuizOption]:
        """Options with ``is_correct`` false, in input order."""
        return [option for option in self.quiz_options or [] if not option.is_correct]


# ---------------------------------------------------------------------------
# Lesson content.
# ---------------------------------------------------------------------------


class LessonStep(BaseModel):
    """One stage of the lesson, pairing the metaphor with the literal concept."""

    step_number: int = Field(..., ge=1)
    title: str
    metaphor_text: str
    literal_text: str
    image_callout: int


class MappingPair(BaseModel):
    """A single concept-term ↔ metaphor-term correspondence."""

    concept_term: str
    metaphor_term: str
    note: str | None = None


class VisualCallout(BaseModel):
    """A numbered annotation positioned on the lesson illustration."""

    id: int = Field(..., ge=1, le=VISUAL_CALLOUT_COUNT)
    position: CalloutPosition
    label: str


class ErrorState(BaseModel):
    """Misconception explanation for one wrong option.

    The generic fallback shares this shape with ``wrong_option_id`` unset.
    """

    wrong_option_id: str | None = None
    misconception_title: str
    wrong_connection_visual: str
    correct_connection_visual: str
    explanation_text: str
    wrong_label: str
    correct_label: str


class MetaphorResult(BaseModel):
    """A complete generated lesson.

    Validation enforces the structural invariants the presentation layer
    relies on:

    - exactly 4 quiz options with exactly one correct,
    - exactly 3 visual callouts with distinct ids 1-3,
    - unique lesson step numbers, each pointing at an existing callout.

    Unknown keys (for example fields added by a newer prompt) are kept.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    persona: str
    concept: str
    metaphor_logic: str
    explanation_text: str
    image_prompt: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    visual_style: str = ""
    quiz_question: str
    quiz_answer: str
    quiz_explanation: str = ""
    lesson_steps: list[LessonStep] = Field(default_factory=list)
    mapping_pairs: list[MappingPair] = Field(default_factory=list)
    visual_callouts: list[VisualCallout]
    quiz_options: list[QuizOption]

    # Enrichment added by the error mirror.
    error_states: list[ErrorState] | None = None
    fallback_error: ErrorState | None = None
    why_text: str | None = None
    why_image_url: str | None = Field(default=None, alias="why_imageUrl")

    @field_validator("quiz_options")
    @classmethod
    def _check_quiz_options(cls, options: list[QuizOption]) -> list[QuizOption]:
        if len(options) != QUIZ_OPTION_COUNT:
            raise ValueError(f"expected {QUIZ_OPTION_COUNT} quiz options, got {len(options)}")
        correct = sum(1 for option in options if option.is_correct)
        if correct != 1:
            raise ValueError(f"expected exactly one correct quiz option, got {correct}")
        if len({option.id for option in options}) != len(options):
            raise ValueError("quiz option ids must be unique")
        return options

    @field_validator("visual_callouts")
    @classmethod
    def _check_visual_callouts(cls, callouts: list[VisualCallout]) -> list[VisualCallout]:
        if len(callouts) != VISUAL_CALLOUT_COUNT:
            raise ValueError(
                f"expected {VISUAL_CALLOUT_COUNT} visual callouts, got {len(callouts)}"
            )
        if {callout.id for callout in callouts} != set(range(1, VISUAL_CALLOUT_COUNT + 1)):
            raise ValueError("visual callout ids must be exactly 1, 2 and 3")
        return callouts

    @model_validator(mode="after")
    def _check_lesson_steps(self) -> MetaphorResult:
        numbers = [step.step_number for step in self.lesson_steps]
        if len(set(numbers)) != len(numbers):
            raise ValueError("lesson step numbers must be unique")
        callout_ids = {callout.id for callout in self.visual_callouts}
        for step in self.lesson_steps:
            if step.image_callout not in callout_ids:
                raise ValueError(
                    f"lesson step {step.step_number} references unknown callout "
                    f"{step.image_callout}"
                )
        return self

    @property
    def correct_option(self) -> QuizOption:
        """The single option marked correct."""
        return next(option for option in self.quiz_options if option.is_correct)


class ErrorMirrorResult(BaseModel):
    """Response body of ``POST /api/generate-error-mirror``."""

    model_config = ConfigDict(populate_by_name=True)

    error_states: list[ErrorState]
    fallback_error: ErrorState
    why_text: str
    why_image_url: str = Field(..., alias="why_imageUrl")


class ResponseMeta(BaseModel):
    """The ``_meta`` block of a ``/api/generate`` response.

    Attributes:
        cached: ``True`` when the lesson came from a fixture.
        fallback: ``True`` when a fixture was served because live generation
            failed.  Omitted otherwise.
        timestamp: Unix time in milliseconds when the response was built.
        model: Text model used for live generation.  Omitted for fixtures.
        response_time: Wall-clock handling time in milliseconds.
    """

    model_config = ConfigDict(populate_by_name=True)

    cached: bool
    fallback: bool | None = None
    timestamp: int
    model: str | None = None
    response_time: int = Field(..., alias="responseTime")
