"""Dual Class - FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application follows a stateless REST pattern:

- **Lesson generation** is performed by
  :class:`~dualclass.api.orchestrator.LessonGenerator`, created once in the
  lifespan handler and stored on ``app.state``.
- **Fixtures and generated images** are plain files under the static
  directory, served by FastAPI's ``StaticFiles`` mount at ``/``.
- **Errors** always carry an ``error`` key.  Validation failures answer 400,
  everything unexpected answers 500 with a generic message.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/api/generate``             Generate (or serve) a lesson
POST      ``/api/generate-error-mirror``  Misconception explanations
GET       ``/api/config``               Demo personas, modes, positions
GET       ``/api/health``               Liveness probe
GET       ``/images/...``, ``/data/...``  Static assets
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    dualclass

Direct invocation::

    python -m dualclass.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from dualclass import __version__
from dualclass.api.models import ErrorMirrorContext, GenerateRequest
from dualclass.api.orchestrator import LessonGenerator
from dualclass.core.asset_store import DEMO_FIXTURES
from dualclass.core.config import config
from dualclass.core.exceptions import ValidationError
from dualclass.core.prompt_builder import CALLOUT_POSITIONS, LESSON_STEP_MODES

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the lesson generator on startup.

    No API client is created here; the model client connects lazily on the
    first live generation.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.lesson_generator = LessonGenerator(config)
    logger.info("LessonGenerator initialised (demo_mode=%s).", config.demo_mode)

    yield


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Dual Class",
    description="Persona-specific metaphor lessons generated with Gemini.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the frontend can be served from a different
# port during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error rendering.
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render every HTTP error as ``{"error": <message>}``.

    Registered on the Starlette base class so that router 404/405 and
    static-file errors are rendered the same way as route errors.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Missing or blank required fields are a 400 with the message as-is."""
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed request bodies with 400 instead of FastAPI's 422."""
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request body",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def _generator() -> LessonGenerator:
    return app.state.lesson_generator


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post("/api/generate")
async def generate_lesson(req: GenerateRequest) -> dict:
    """Generate a metaphor lesson for a concept and persona.

    Demo personas are served from fixtures; other personas go to the live
    model, falling back to the chef fixture if generation fails.

    Args:
        req: Validated :class:`GenerateRequest` payload.

    Returns:
        The lesson fields plus ``imageUrl`` and ``_meta``.

    Raises:
        ValidationError: If concept or persona is missing (rendered as 400).
        HTTPException: 500 on an unexpected internal error, including an
            unreadable fixture.
    """
    if not req.is_complete():
        raise ValidationError("Concept and persona are required")

    try:
        return await _generator().generate(req)
    except Exception as e:
        logger.exception("Error in generate API: %s", e)
        raise HTTPException(status_code=500, detail="Failed to generate explanation") from e


@app.post("/api/generate-error-mirror")
async def generate_error_mirror(context: ErrorMirrorContext) -> dict:
    """Generate misconception explanations for every wrong quiz option.

    Args:
        context: Validated :class:`ErrorMirrorContext` payload.

    Returns:
        Dictionary with ``error_states``, ``fallback_error``, ``why_text``
        and ``why_imageUrl``.

    Raises:
        ValidationError: If a required context field is missing (400).
        HTTPException: 500 if generation fails.  There is no fixture for
            this endpoint.
    """
    if not context.is_complete():
        raise ValidationError("Missing required context fields")

    try:
        return await _generator().generate_error_mirror(context)
    except Exception as e:
        logger.exception("Error in generate-error-mirror API: %s", e)
        raise HTTPException(
            status_code=500, detail="Failed to generate error mirror content"
        ) from e


@app.get("/api/config")
async def get_config() -> dict:
    """Return the client-facing configuration.

    Returns:
        Dictionary with ``version``, ``demo_mode``, ``demo_personas``,
        ``lesson_step_modes``, ``callout_positions``, ``text_model`` and
        ``image_model``.
    """
    return {
        "version": __version__,
        "demo_mode": config.demo_mode,
        "demo_personas": [needle for needle, _ in DEMO_FIXTURES],
        "lesson_step_modes": list(LESSON_STEP_MODES),
        "callout_positions": list(CALLOUT_POSITIONS),
        "text_model": config.text_model,
        "image_model": config.image_model,
    }


@app.get("/api/health")
async def health() -> dict:
    """Liveness probe."""
    return {"status": "ok", "version": __version__}


# Mount last so that API routes take precedence over static files.  Serves
# fixtures at ``/data/...`` and images at ``/images/...``.
app.mount("/", StaticFiles(directory=str(config.static_dir)), name="static")


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~dualclass.core.config.config`
    (``DUALCLASS_SERVER_HOST``, ``DUALCLASS_SERVER_PORT``,
    ``DUALCLASS_LOG_LEVEL``).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``dualclass`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "dualclass.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
