"""Lesson generation pipeline with demo fixtures and fallbacks.

:class:`LessonGenerator` sits between the route handlers and the
:class:`~dualclass.core.model_client.ModelClient`.  Its contract is "always
return some lesson": a model failure on the primary path is masked by a
pre-baked fixture, and a failed illustration is masked by a fixed image.

Metaphor pipeline
-----------------
1. **Demo short-circuit** - personas containing "chef", "starship captain"
   or "captain" are answered from the matching fixture, unmodified except
   for ``_meta``.  The model is never called.
2. **Live path** - generate the lesson JSON, parse it, validate it against
   :class:`~dualclass.api.models.MetaphorResult`, then generate the
   illustration from its ``image_prompt``.  An image failure substitutes a
   fallback image and the request continues.
3. **Fallback** - if the text call, parsing or validation fails, the chef
   fixture is returned with ``_meta.fallback`` set.

Error mirror
------------
No fixture exists for the error mirror; failures propagate to the caller.
"""

from __future__ import annotations

import logging
import time

from pydantic import ValidationError as PydanticValidationError

from dualclass.api.models import (
    ErrorMirrorContext,
    ErrorMirrorResult,
    GenerateRequest,
    MetaphorResult,
    ResponseMeta,
)
from dualclass.core.asset_store import FixtureStore
from dualclass.core.config import DualClassConfig
from dualclass.core.exceptions import ModelError
from dualclass.core.json_extraction import parse_model_json
from dualclass.core.model_client import ModelClient
from dualclass.ui.themes import persona_theme

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class LessonGenerator:
    """Generate lessons and error mirrors with caching and fallbacks.

    Attributes:
        config: Application configuration.
        model_client: Client for the generative API.
        fixtures: Store of pre-baked lesson fixtures.
    """

    def __init__(
        self,
        config: DualClassConfig,
        model_client: ModelClient | None = None,
        fixtures: FixtureStore | None = None,
    ) -> None:
        self.config = config
        self.model_client = model_client or ModelClient(config)
        self.fixtures = fixtures or FixtureStore(config.data_dir)

    def fallback_image_for(self, persona: str) -> str:
        """Image URL used when the live illustration cannot be generated."""
        if persona_theme(persona) == "captain":
            return self.config.captain_fallback_image_url
        return self.config.fallback_image_url

    @staticmethod
    def _with_meta(payload: dict, meta: ResponseMeta) -> dict:
        return {**payload, "_meta": meta.model_dump(by_alias=True, exclude_none=True)}

    async def generate(self, req: GenerateRequest) -> dict:
        """Produce a lesson response body for a validated request.

        Args:
            req: Request with non-blank ``concept`` and ``persona``.

        Returns:
            The lesson fields plus ``imageUrl`` and ``_meta``.

        Raises:
            FixtureError: If a fixture has to be served and cannot be read.
        """
        started = _now_ms()
        concept = req.concept.strip()
        persona = req.persona.strip()

        # --- Demo short-circuit ------------------------------------------------
        fixture_name = self.fixtures.match_demo_persona(persona) if self.config.demo_mode else None
        if fixture_name:
            logger.info("Serving demo fixture '%s' for persona '%s'.", fixture_name, persona)
            payload = self.fixtures.load(fixture_name)
            meta = ResponseMeta(
                cached=True,
                timestamp=_now_ms(),
                response_time=_now_ms() - started,
            )
            return self._with_meta(payload, meta)

        # --- Live generation -----------------------------------------------------
        try:
            json_text = await self.model_client.generate_metaphor(concept, persona, req.mode)
            lesson = MetaphorResult.model_validate(parse_model_json(json_text))
        except (ModelError, PydanticValidationError) as e:
            logger.error("Live generation failed, serving fallback fixture: %s", e)
            payload = self.fixtures.load_fallback()
            meta = ResponseMeta(
                cached=True,
                fallback=True,
                timestamp=_now_ms(),
                response_time=_now_ms() - started,
            )
            return self._with_meta(payload, meta)

        image_url = self.fallback_image_for(persona)
        if lesson.image_prompt:
            try:
                image_url = await self.model_client.generate_image(lesson.image_prompt)
            except (ModelError, OSError) as e:
                logger.warning("Image generation failed, using fallback image: %s", e)
        else:
            logger.warning("Lesson has no image_prompt, using fallback image.")
        lesson.image_url = image_url

        meta = ResponseMeta(
            cached=False,
            timestamp=_now_ms(),
            model=self.model_client.text_model,
            response_time=_now_ms() - started,
        )
        return self._with_meta(lesson.model_dump(by_alias=True, exclude_none=True), meta)

    async def generate_error_mirror(self, context: ErrorMirrorContext) -> dict:
        """Produce the error-mirror response body for a finished quiz.

        Raises:
            ModelError: If the text call fails or returns unusable JSON.
        """
        logger.info("Generating error mirror for %s - %s.", context.persona, context.concept)
        raw = await self.model_client.generate_error_mirror(context)
        result = ErrorMirrorResult.model_validate(raw)
        logger.info("Error mirror complete (%d error states).", len(result.error_states))
        return result.model_dump(by_alias=True, exclude_none=True)
