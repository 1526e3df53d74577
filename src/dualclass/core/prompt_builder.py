"""Prompt compilation for the Dual Class metaphor engine.

Every prompt sent to the generative API is assembled here from fixed
boilerplate sections and the caller-supplied concept, persona and quiz
context.  The functions are pure: identical arguments always produce an
identical prompt string, which keeps them easy to snapshot in tests.

Prompts
-------
build_metaphor_prompt
    Asks the text model for the full lesson JSON (metaphor, lesson steps,
    Rosetta Stone mapping pairs, visual callouts and a 4-option quiz).
build_error_mirror_prompt
    Asks the text model for one misconception explanation per wrong quiz
    option, a generic fallback, a "why" explanation and the image
    sub-prompts needed to illustrate them.
build_illustration_prompt
    Wraps an image subject in the two-tone lighting template shared by
    every generated illustration.

Concept and persona values are interpolated verbatim.  They are untrusted
user text and are not escaped.

Usage
-----
::

    prompt = build_metaphor_prompt("Transformer Attention", "Chef", "fixed")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# ---------------------------------------------------------------------------
# Fixed vocabulary shared with the response models.
# ---------------------------------------------------------------------------

LESSON_STEP_MODES = ("fixed", "dynamic")

CALLOUT_POSITIONS = (
    "top-left",
    "top-center",
    "top-right",
    "center-left",
    "center",
    "center-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
)

# ---------------------------------------------------------------------------
# Fixed boilerplate sections.
# ---------------------------------------------------------------------------

_METAPHOR_PREAMBLE = (
    "You are the Dual Class Metaphor Engine. Given a technical concept and a persona, "
    "create an educational explanation using a metaphor from that persona's domain. "
    "The metaphor must be structurally faithful: every moving part of the concept needs "
    "a counterpart in the persona's world."
)

_STEP_INSTRUCTIONS = {
    "fixed": "Break the explanation into exactly 3 lesson steps.",
    "dynamic": (
        "Break the explanation into 3-5 lesson steps, choosing the number of steps "
        "that best fits the complexity of the concept."
    ),
}

_METAPHOR_SCHEMA = """{
  "persona": "<the persona>",
  "concept": "<the concept>",
  "metaphor_logic": "<1-2 sentences explaining WHY this metaphor works>",
  "explanation_text": "<3-4 paragraph explanation using the metaphor>",
  "image_prompt": "<detailed prompt for generating a visual diagram in the style of this persona>",
  "visual_style": "<description of the visual style>",
  "lesson_steps": [
    {
      "step_number": 1,
      "title": "<short step title>",
      "metaphor_text": "<what happens in the persona's world>",
      "literal_text": "<what happens in the technical concept>",
      "image_callout": 1
    }
  ],
  "mapping_pairs": [
    {"concept_term": "<technical term>", "metaphor_term": "<persona term>", "note": "<optional short note>"}
  ],
  "visual_callouts": [
    {"id": 1, "position": "<grid position>", "label": "<short label>"}
  ],
  "quiz_question": "<question answerable by looking at the image>",
  "quiz_answer": "<correct answer, 1-3 words>",
  "quiz_explanation": "<why this answer connects the metaphor to the concept>",
  "quiz_options": [
    {"id": "a", "text": "<option text>", "is_correct": false}
  ]
}"""

_ERROR_MIRROR_PREAMBLE = (
    "You are the Dual Class Error Mirror. A learner just answered a visual quiz about a "
    "metaphor. For every wrong answer, explain the misconception it reveals by holding up "
    "a mirror: show what the learner's choice would mean in the persona's world, next to "
    "what the correct choice means."
)

_ERROR_MIRROR_SCHEMA = """{
  "error_states": [
    {
      "wrong_option_id": "<id of the wrong option>",
      "misconception_title": "<short title naming the misconception>",
      "explanation_text": "<2-3 sentences explaining why this choice is wrong in both worlds>",
      "wrong_label": "<caption for the wrong-connection illustration>",
      "correct_label": "<caption for the correct-connection illustration>"
    }
  ],
  "fallback_error": {
    "misconception_title": "<generic misconception title>",
    "explanation_text": "<generic explanation that applies to any wrong answer>",
    "wrong_label": "<generic caption for a wrong connection>",
    "correct_label": "<caption for the correct connection>"
  },
  "why_text": "<2-3 sentences on why the correct answer is right>",
  "image_prompts": {
    "correct_connection": "<image prompt showing the correct connection>",
    "wrong_options": {
      "<wrong option id>": "<image prompt showing the consequence of choosing this option>"
    },
    "why_image": "<image prompt illustrating why the correct answer is right>"
  }
}"""

_ILLUSTRATION_TEMPLATE = """Create a clear, educational diagram with CINEMATIC DUAL LIGHTING:

LIGHTING REQUIREMENTS (CRITICAL):
- Left side: Illuminated with WARM PINK/MAGENTA light (#F55DA8, hot pink glow)
- Right side: Illuminated with COOL CYAN/TEAL light (#1DE3D4, electric cyan glow)
- Background: Deep dark blue-black gradient (#0f1015 to #1a1b23)
- Style: High contrast, cinematic split-tone color grading like a movie poster

SUBJECT: {subject}

This image will be displayed in a split-screen interface where left=pink world, right=cyan world.
The dual lighting MUST be dramatic and unmistakable."""


def field_value(item: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an attribute-bearing object."""
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def wrong_options(quiz_options: Sequence[Any]) -> list[Any]:
    """Return the quiz options whose ``is_correct`` flag is not set.

    Accepts plain dictionaries as well as the Pydantic ``QuizOption`` model.
    """
    return [option for option in quiz_options if not field_value(option, "is_correct", False)]


def build_metaphor_prompt(concept: str, persona: str, mode: str = "dynamic") -> str:
    """Compile the lesson-generation prompt.

    Args:
        concept: Technical concept to explain (e.g. "Transformer Attention").
        persona: Persona whose domain supplies the metaphor (e.g. "Chef").
        mode: ``"fixed"`` for exactly 3 lesson steps, ``"dynamic"`` for 3-5.
            Unknown values are treated as ``"dynamic"``.

    Returns:
        The compiled prompt with sections separated by blank lines.
    """
    step_instruction = _STEP_INSTRUCTIONS.get(mode, _STEP_INSTRUCTIONS["dynamic"])
    positions = ", ".join(CALLOUT_POSITIONS)

    parts = [
        _METAPHOR_PREAMBLE,
        f"Concept: {concept}\nPersona: {persona}",
        "\n".join(
            [
                "Requirements:",
                f"- {step_instruction} Number the steps from 1.",
                "- Provide 4-6 mapping_pairs, each linking one technical term to its "
                "counterpart in the persona's world. Use each concept_term only once.",
                "- Provide exactly 3 visual_callouts with ids 1, 2 and 3. Each position must "
                f"be one of: {positions}. Use a different position for each callout.",
                "- Each lesson step's image_callout must reference a visual_callout id.",
                "- Provide exactly 4 quiz_options with ids a, b, c and d. Exactly one option "
                "has is_correct set to true and its text must match quiz_answer.",
                "- The image_prompt must describe a split-screen diagram: the persona's world "
                "on the left, the technical concept on the right, with the 3 callout regions "
                "clearly visible.",
            ]
        ),
        "Respond ONLY with valid JSON in this exact format:",
        _METAPHOR_SCHEMA,
    ]
    return "\n\n".join(parts)


def build_error_mirror_prompt(context: Any) -> str:
    """Compile the error-mirror prompt for a finished quiz.

    Args:
        context: An ``ErrorMirrorContext`` model or an equivalent mapping with
            ``persona``, ``concept``, ``metaphor_logic``, ``quiz_question``,
            ``quiz_answer`` and ``quiz_options``.

    Returns:
        The compiled prompt.  The number of required error states equals the
        number of options whose ``is_correct`` flag is false.
    """
    options = field_value(context, "quiz_options", None) or []
    wrong = wrong_options(options)

    option_lines = [
        f"- {field_value(o, 'id')}: {field_value(o, 'text')}"
        + (" (CORRECT)" if field_value(o, "is_correct", False) else "")
        for o in options
    ]
    wrong_lines = [f"- {field_value(o, 'id')}: {field_value(o, 'text')}" for o in wrong]
    wrong_ids = ", ".join(str(field_value(o, "id")) for o in wrong)

    parts = [
        _ERROR_MIRROR_PREAMBLE,
        "\n".join(
            [
                f"Persona: {field_value(context, 'persona', '')}",
                f"Concept: {field_value(context, 'concept', '')}",
                f"Metaphor logic: {field_value(context, 'metaphor_logic', '') or ''}",
                f"Quiz question: {field_value(context, 'quiz_question', '')}",
                f"Correct answer: {field_value(context, 'quiz_answer', '') or ''}",
            ]
        ),
        "All options:\n" + "\n".join(option_lines),
        "Wrong options:\n" + "\n".join(wrong_lines),
        "\n".join(
            [
                "Requirements:",
                f"- Generate an error_state for EACH wrong option ({len(wrong)} total), "
                f"using wrong_option_id values: {wrong_ids}.",
                "- Generate one generic fallback_error that fits any wrong answer.",
                "- Provide image_prompts.correct_connection, one image_prompts.wrong_options "
                "entry per wrong option id, and image_prompts.why_image.",
                "- Image prompts must stay in the persona's visual world and must not "
                "contain written text.",
            ]
        ),
        "Respond ONLY with valid JSON in this exact format:",
        _ERROR_MIRROR_SCHEMA,
    ]
    return "\n\n".join(parts)


def build_illustration_prompt(subject: str) -> str:
    """Wrap an image subject in the shared two-tone lighting template.

    Args:
        subject: Scene description produced by the text model.

    Returns:
        The full image-generation prompt.
    """
    return _ILLUSTRATION_TEMPLATE.format(subject=subject.strip())
