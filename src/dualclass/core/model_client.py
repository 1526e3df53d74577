"""Generative API access for the Dual Class lesson pipeline.

This module provides :class:`ModelClient`, the single point of contact with
the Gemini API.  It performs exactly two kinds of outbound calls and
normalises their output:

- **Structured text** - a prompt goes in, the JSON text embedded in the
  answer comes out (markdown fences stripped, not yet parsed).
- **Image generation** - a prompt (optionally with a reference image for
  edit-style calls) goes in, the first inline image part is written to the
  generated-image store and its URL comes out.

:meth:`ModelClient.generate_error_mirror` composes the two: one text call
followed by one image call per required illustration.

Key Responsibilities
--------------------
- **Lazy client creation** - the ``google-genai`` client is only built on
  the first call, so importing the module never needs an API key.
- **Error normalisation** - SDK and transport failures are re-raised as
  :class:`~dualclass.core.exceptions.ModelError` with the original
  exception chained.
- **Sequential image calls** - error-mirror illustrations are requested one
  at a time, each awaited before the next starts, to stay under the image
  API's rate limits.  Each call has its own failure boundary: a failed slot
  is replaced by the placeholder image and the batch continues.
- **No retries** - every call is attempted exactly once.

Usage
-----
::

    from dualclass.core.config import config
    from dualclass.core.model_client import ModelClient

    client = ModelClient(config)
    json_text = await client.generate_metaphor("Transformer Attention", "Surfer", "fixed")
    image_url = await client.generate_image("A surfer choosing which wave to ride")

See Also
--------
- :mod:`dualclass.core.prompt_builder` - prompt templates.
- :mod:`dualclass.api.orchestrator` - the caller that adds caching and
  fallbacks.
"""

from __future__ import annotations

import asyncio
import io
import logging
import os
from typing import TYPE_CHECKING, Any

from PIL import Image

from dualclass.core.asset_store import GeneratedImageStore
from dualclass.core.config import DualClassConfig
from dualclass.core.exceptions import ModelError, NoImageDataError, ParseError
from dualclass.core.json_extraction import extract_json_text, parse_model_json
from dualclass.core.prompt_builder import (
    build_error_mirror_prompt,
    build_illustration_prompt,
    build_metaphor_prompt,
    field_value,
    wrong_options,
)

if TYPE_CHECKING:
    from dualclass.api.models import ErrorMirrorContext

logger = logging.getLogger(__name__)

# Environment variable consulted when the config carries no API key.
_API_KEY_ENV = "GOOGLE_GEMINI_API_KEY"


def _first_inline_image(response: Any) -> tuple[bytes | str, str] | None:
    """Return ``(data, mime_type)`` for the first inline image part, if any.

    Walks every candidate's content parts in order and ignores text parts
    and inline parts whose MIME type is not ``image/*``.
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if not inline or not getattr(inline, "data", None):
                continue
            mime_type = getattr(inline, "mime_type", None) or ""
            if mime_type.startswith("image/"):
                return inline.data, mime_type
    return None


# Text fields of an error state, as the model is asked to return them.
_ERROR_TEXT_FIELDS = ("misconception_title", "explanation_text", "wrong_label", "correct_label")


def _text(value: Any) -> str:
    """Model text field as a string; JSON ``null`` becomes ``""``."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _error_text(state: dict) -> dict[str, str]:
    return {name: _text(state.get(name)) for name in _ERROR_TEXT_FIELDS}


def _object_field(payload: dict, key: str) -> dict:
    """Return ``payload[key]`` as an object; absent or ``null`` is empty.

    Raises:
        ParseError: If the value is present but not a JSON object.
    """
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ParseError(f"Expected '{key}' to be an object, got {type(value).__name__}")
    return value


class ModelClient:
    """Client for the text and image generation capabilities.

    Attributes:
        _config (DualClassConfig):
            Application configuration - model names and API key.
        _image_store (GeneratedImageStore):
            Destination for generated images.
        _client:
            The lazily created ``google.genai.Client``, or ``None`` before
            the first call.
    """

    def __init__(
        self,
        config: DualClassConfig,
        image_store: GeneratedImageStore | None = None,
    ) -> None:
        """Initialise the model client.

        No network connection is made at this stage.

        Args:
            config: Application configuration instance.
            image_store: Store for generated images.  Defaults to a store
                over ``config.generated_dir``.
        """
        self._config = config
        self._image_store = image_store or GeneratedImageStore(
            config.generated_dir, config.generated_url_prefix
        )
        self._client = None

    # -- Properties ---------------------------------------------------------

    @property
    def text_model(self) -> str:
        """Identifier of the text generation model."""
        return self._config.text_model

    @property
    def image_model(self) -> str:
        """Identifier of the image generation model."""
        return self._config.image_model

    @property
    def placeholder_image_url(self) -> str:
        """Image URL substituted for a failed error-mirror slot."""
        return self._config.placeholder_image_url

    # -- SDK plumbing -------------------------------------------------------

    def _get_client(self):
        """Return the ``google.genai`` client, creating it on first use.

        Raises:
            ModelError: If no API key is configured.
        """
        if self._client is not None:
            return self._client

        api_key = self._config.gemini_api_key or os.environ.get(_API_KEY_ENV)
        if not api_key:
            raise ModelError(
                f"No Gemini API key configured (set DUALCLASS_GEMINI_API_KEY or {_API_KEY_ENV})"
            )

        from google import genai

        self._client = genai.Client(api_key=api_key)
        logger.info("Gemini client initialised.")
        return self._client

    async def _generate_text(self, prompt: str) -> str:
        """Send a prompt to the text model and return the raw answer text.

        Raises:
            ModelError: On any transport or API failure, or an empty answer.
        """
        client = self._get_client()
        logger.info("Calling text model '%s' (%d prompt chars).", self.text_model, len(prompt))
        try:
            response = await client.aio.models.generate_content(
                model=self.text_model,
                contents=prompt,
            )
        except Exception as e:
            logger.error("Text generation failed: %s", e)
            raise ModelError(f"Text generation failed: {e}") from e

        text = getattr(response, "text", None)
        if not text:
            raise ModelError("Text model returned an empty response")
        logger.info("Text model answered with %d chars.", len(text))
        return text

    # -- Public interface ---------------------------------------------------

    async def generate_metaphor(self, concept: str, persona: str, mode: str = "dynamic") -> str:
        """Generate the lesson JSON for a concept and persona.

        Args:
            concept: Technical concept to explain.
            persona: Persona whose domain supplies the metaphor.
            mode: ``"fixed"`` or ``"dynamic"`` lesson step count.

        Returns:
            The JSON text extracted from the model answer.  The caller is
            responsible for parsing it.

        Raises:
            ModelError: If the model call fails.
        """
        prompt = build_metaphor_prompt(concept, persona, mode)
        text = await self._generate_text(prompt)
        return extract_json_text(text)

    async def generate_image(
        self,
        prompt: str,
        reference_image: bytes | Image.Image | None = None,
    ) -> str:
        """Generate an illustration and persist it.

        The prompt is wrapped in the shared two-tone lighting template before
        it is sent.

        Args:
            prompt: Scene description for the illustration.
            reference_image: Optional image to edit or use as a composition
                reference, as raw bytes or a PIL image.

        Returns:
            Relative URL of the saved image.

        Raises:
            NoImageDataError: If the response contains no inline image.
            ModelError: On any transport or API failure.
        """
        from google.genai import types

        client = self._get_client()
        contents: list[Any] = [build_illustration_prompt(prompt)]
        if reference_image is not None:
            if isinstance(reference_image, Image.Image):
                buffer = io.BytesIO()
                reference_image.save(buffer, format="PNG")
                reference_image = buffer.getvalue()
            contents.append(types.Part.from_bytes(data=reference_image, mime_type="image/png"))

        logger.info(
            "Calling image model '%s' (reference=%s).",
            self.image_model,
            reference_image is not None,
        )
        try:
            response = await client.aio.models.generate_content(
                model=self.image_model,
                contents=contents,
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
        except Exception as e:
            logger.error("Image generation failed: %s", e)
            raise ModelError(f"Image generation failed: {e}") from e

        found = _first_inline_image(response)
        if found is None:
            raise NoImageDataError("No image data in response")

        data, mime_type = found
        return await asyncio.to_thread(self._image_store.save, data, mime_type)

    async def _image_or_placeholder(self, slot: str, prompt: str | None) -> str:
        """Generate one error-mirror image, degrading to the placeholder on failure."""
        if not prompt or not str(prompt).strip():
            logger.warning("No image prompt for slot '%s'; using placeholder.", slot)
            return self.placeholder_image_url
        try:
            return await self.generate_image(str(prompt))
        except (ModelError, OSError) as e:
            logger.warning("Image slot '%s' failed (%s); using placeholder.", slot, e)
            return self.placeholder_image_url

    async def generate_error_mirror(self, context: ErrorMirrorContext) -> dict:
        """Generate misconception explanations and illustrations for a quiz.

        Makes one text call, then image calls for ``correct_connection``,
        each wrong option (in input order) and ``why_image``, strictly one
        after another.

        Args:
            context: The finished quiz and its metaphor.

        Returns:
            Dictionary with ``error_states`` (exactly one per wrong option,
            matched by ``wrong_option_id``), ``fallback_error``,
            ``why_text`` and ``why_imageUrl``.

        Raises:
            ModelError: If the text call fails.
            ParseError: If the answer is not JSON or its containers have the
                wrong shape.  Raised before any image call is made.
        """
        prompt = build_error_mirror_prompt(context)
        text = await self._generate_text(prompt)
        payload = parse_model_json(text)

        # --- Shape checks, before any image is paid for ---------------------
        image_prompts = _object_field(payload, "image_prompts")
        wrong_prompts = _object_field(image_prompts, "wrong_options")
        fallback = _error_text(_object_field(payload, "fallback_error"))

        raw_states = payload.get("error_states") or []
        if not isinstance(raw_states, list):
            raise ParseError(
                f"Expected 'error_states' to be a list, got {type(raw_states).__name__}"
            )
        generated_states = {
            str(state.get("wrong_option_id")): _error_text(state)
            for state in raw_states
            if isinstance(state, dict)
        }

        options = wrong_options(field_value(context, "quiz_options", None) or [])
        state_texts: list[tuple[str, dict[str, str]]] = []
        for option in options:
            option_id = str(field_value(option, "id"))
            state = generated_states.get(option_id)
            if state is None:
                logger.warning("Model returned no error state for option '%s'.", option_id)
                state = fallback
            if not state["wrong_label"]:
                state = dict(state, wrong_label=_text(field_value(option, "text", "")))
            state_texts.append((option_id, state))

        # --- Images, one at a time ------------------------------------------
        correct_url = await self._image_or_placeholder(
            "correct_connection", image_prompts.get("correct_connection")
        )

        error_states: list[dict] = []
        for option_id, state in state_texts:
            wrong_url = await self._image_or_placeholder(
                f"wrong_option:{option_id}", wrong_prompts.get(option_id)
            )
            error_states.append(
                {
                    "wrong_option_id": option_id,
                    "misconception_title": state["misconception_title"],
                    "wrong_connection_visual": wrong_url,
                    "correct_connection_visual": correct_url,
                    "explanation_text": state["explanation_text"],
                    "wrong_label": state["wrong_label"],
                    "correct_label": state["correct_label"],
                }
            )

        why_url = await self._image_or_placeholder("why_image", image_prompts.get("why_image"))

        return {
            "error_states": error_states,
            "fallback_error": {
                "misconception_title": fallback["misconception_title"],
                "wrong_connection_visual": self.placeholder_image_url,
                "correct_connection_visual": correct_url,
                "explanation_text": fallback["explanation_text"],
                "wrong_label": fallback["wrong_label"],
                "correct_label": fallback["correct_label"],
            },
            "why_text": _text(payload.get("why_text")),
            "why_imageUrl": why_url,
        }
