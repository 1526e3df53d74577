"""Shared pytest fixtures for Dual Class tests."""

import copy
import io
import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from PIL import Image

from dualclass.core.asset_store import FixtureStore, GeneratedImageStore
from dualclass.core.config import DualClassConfig
from dualclass.core.exceptions import ModelError

PACKAGE_STATIC_DIR = Path(__file__).resolve().parents[1] / "src" / "dualclass" / "static"


class FakeModelClient:
    """Stand-in for :class:`~dualclass.core.model_client.ModelClient`.

    Returns canned values and records every call.  Setting ``metaphor_error``
    or ``image_error`` makes the corresponding call raise it instead.
    """

    text_model = "fake-text-model"
    image_model = "fake-image-model"

    def __init__(self, metaphor_json: str = "", error_mirror: dict | None = None):
        self.metaphor_json = metaphor_json
        self.error_mirror = error_mirror
        self.image_url = "/images/generated/generated_1700000000000.png"
        self.metaphor_error: Exception | None = None
        self.image_error: Exception | None = None
        self.error_mirror_error: Exception | None = None
        self.calls: list[tuple] = []

    async def generate_metaphor(self, concept, persona, mode="dynamic"):
        self.calls.append(("metaphor", concept, persona, mode))
        if self.metaphor_error is not None:
            raise self.metaphor_error
        return self.metaphor_json

    async def generate_image(self, prompt, reference_image=None):
        self.calls.append(("image", prompt))
        if self.image_error is not None:
            raise self.image_error
        return self.image_url

    async def generate_error_mirror(self, context):
        self.calls.append(("error_mirror", context))
        if self.error_mirror_error is not None:
            raise self.error_mirror_error
        if self.error_mirror is None:
            raise ModelError("no canned error mirror")
        return copy.deepcopy(self.error_mirror)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> DualClassConfig:
    """Create a test configuration.

    Fixtures are read from the packaged static directory; generated images
    go to a temporary directory so tests never write into the package.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        DualClassConfig instance for testing
    """
    return DualClassConfig(
        _env_file=None,
        gemini_api_key="test-key",
        static_dir=PACKAGE_STATIC_DIR,
        generated_dir=temp_dir / "generated",
        demo_mode=True,
    )


@pytest.fixture
def fixture_store() -> FixtureStore:
    """Fixture store over the packaged demo lessons."""
    return FixtureStore(PACKAGE_STATIC_DIR / "data")


@pytest.fixture
def image_store(temp_dir: Path) -> GeneratedImageStore:
    """Generated-image store writing into a temporary directory."""
    return GeneratedImageStore(temp_dir / "generated")


@pytest.fixture
def png_bytes() -> bytes:
    """A small but valid PNG image.

    Returns:
        Encoded PNG bytes
    """
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(245, 93, 168)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_lesson() -> dict:
    """A structurally valid lesson as the text model would return it.

    Returns:
        Lesson dictionary without ``imageUrl`` or ``_meta``
    """
    return {
        "persona": "Surfer",
        "concept": "Docker Containers",
        "metaphor_logic": "A board bag carries everything a surfer needs to ride any beach.",
        "explanation_text": "Every beach is different, but the bag is always the same.",
        "image_prompt": "A surfer packing a board bag next to a shipping container",
        "visual_style": "Sunny beach meets clean diagrams",
        "lesson_steps": [
            {
                "step_number": 1,
                "title": "Pack the Bag",
                "metaphor_text": "Wax, leash and fins go in the bag.",
                "literal_text": "Dependencies go into the image.",
                "image_callout": 1,
            },
            {
                "step_number": 2,
                "title": "Travel",
                "metaphor_text": "The bag flies to a new beach.",
                "literal_text": "The image is pushed to a registry.",
                "image_callout": 2,
            },
            {
                "step_number": 3,
                "title": "Paddle Out",
                "metaphor_text": "Unpack and surf, same kit every time.",
                "literal_text": "The container runs identically on any host.",
                "image_callout": 3,
            },
        ],
        "mapping_pairs": [
            {"concept_term": "Image", "metaphor_term": "Packed board bag"},
            {"concept_term": "Container", "metaphor_term": "Session in the water"},
            {"concept_term": "Registry", "metaphor_term": "Airport baggage hall"},
            {"concept_term": "Host", "metaphor_term": "Beach", "note": "Any beach works"},
        ],
        "visual_callouts": [
            {"id": 1, "position": "top-left", "label": "Board bag"},
            {"id": 2, "position": "center", "label": "Baggage hall"},
            {"id": 3, "position": "bottom-right", "label": "Line-up"},
        ],
        "quiz_question": "What does the board bag represent?",
        "quiz_answer": "Container image",
        "quiz_explanation": "The bag holds everything needed, like an image.",
        "quiz_options": [
            {"id": "a", "text": "Container image", "is_correct": True},
            {"id": "b", "text": "Host kernel", "is_correct": False},
            {"id": "c", "text": "Network bridge", "is_correct": False},
            {"id": "d", "text": "Volume mount", "is_correct": False},
        ],
    }


@pytest.fixture
def error_mirror_context() -> dict:
    """Request body for the error mirror endpoint.

    Returns:
        Context dictionary with one correct and three wrong options
    """
    return {
        "persona": "Surfer",
        "concept": "Docker Containers",
        "metaphor_logic": "A board bag carries everything a surfer needs.",
        "quiz_question": "What does the board bag represent?",
        "quiz_answer": "Container image",
        "quiz_options": [
            {"id": "a", "text": "Container image", "is_correct": True},
            {"id": "b", "text": "Host kernel", "is_correct": False},
            {"id": "c", "text": "Network bridge", "is_correct": False},
            {"id": "d", "text": "Volume mount", "is_correct": False},
        ],
    }


@pytest.fixture
def sample_error_mirror() -> dict:
    """A complete error mirror as returned by the model client.

    Returns:
        Error mirror dictionary with three error states
    """
    state = {
        "misconception_title": "Wrong kit",
        "wrong_connection_visual": "/images/error_placeholder.png",
        "correct_connection_visual": "/images/generated/generated_1.png",
        "explanation_text": "That is not what travels in the bag.",
        "wrong_label": "Wrong",
        "correct_label": "Container image",
    }
    return {
        "error_states": [{**state, "wrong_option_id": option_id} for option_id in "bcd"],
        "fallback_error": state,
        "why_text": "The bag is the image.",
        "why_imageUrl": "/images/generated/generated_2.png",
    }


@pytest.fixture
def fake_model_client(sample_lesson: dict) -> FakeModelClient:
    """Fake model client whose metaphor call returns ``sample_lesson`` as JSON."""
    return FakeModelClient(metaphor_json=json.dumps(sample_lesson))


@pytest.fixture
def test_client(test_config: DualClassConfig, fake_model_client: FakeModelClient):
    """FastAPI TestClient with the lesson generator wired to a fake model client.

    The real lifespan runs, then ``app.state.lesson_generator`` is replaced
    so that no request reaches the network.

    Yields:
        fastapi.testclient.TestClient
    """
    from fastapi.testclient import TestClient

    from dualclass.api.main import app
    from dualclass.api.orchestrator import LessonGenerator

    with TestClient(app) as client:
        app.state.lesson_generator = LessonGenerator(
            test_config, model_client=fake_model_client
        )
        yield client
