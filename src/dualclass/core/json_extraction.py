"""Extraction of JSON payloads from free-form model output.

Text models are asked to answer with a bare JSON object but frequently wrap it
in a markdown code fence, sometimes labelled ``json`` and sometimes not.  The
helpers here isolate that clean-up so it can be tested on its own.

Parsing is two-staged:

1. Locate a fenced block (``json``-labelled first, then any fence).
2. Parse the selected substring as JSON; if that fails, parse the raw text.

If neither candidate yields a JSON object a :class:`ParseError` is raised.
"""

from __future__ import annotations

import json
import logging
import re

from dualclass.core.exceptions import ParseError

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```\s*(.*?)\s*```", re.DOTALL)


def find_fenced_block(text: str) -> str | None:
    """Return the trimmed content of the first fenced block, or ``None``.

    A block labelled ``json`` wins over an unlabelled one even when the
    unlabelled block appears earlier in the text.

    Args:
        text: Raw model output.

    Returns:
        The fenced content stripped of surrounding whitespace, or ``None``
        when the text contains no fence.
    """
    match = _JSON_FENCE.search(text) or _ANY_FENCE.search(text)
    if match:
        return match.group(1).strip()
    return None


def extract_json_text(text: str) -> str:
    """Return the JSON text embedded in a model response.

    Args:
        text: Raw model output.

    Returns:
        The fenced content when a fence is present, otherwise ``text``
        unchanged.
    """
    fenced = find_fenced_block(text)
    return fenced if fenced is not None else text


def parse_model_json(text: str) -> dict:
    """Parse a JSON object out of model output.

    Args:
        text: Raw model output or text already returned by
            :func:`extract_json_text`.

    Returns:
        The decoded JSON object.

    Raises:
        ParseError: If neither the fenced block nor the raw text decode to a
            JSON object.
    """
    candidates: list[str] = []
    fenced = find_fenced_block(text)
    if fenced is not None:
        candidates.append(fenced)
    candidates.append(text.strip())

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e
            continue
        if isinstance(payload, dict):
            return payload
        last_error = None
        logger.debug("Model JSON decoded to %s, expected an object.", type(payload).__name__)

    if last_error is not None:
        raise ParseError(f"Model output is not valid JSON: {last_error}") from last_error
    raise ParseError("Model output is not a JSON object")
