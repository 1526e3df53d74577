"""File-backed asset storage for Dual Class.

Two flat-file stores live here so route handlers and the model client can
stay focused on their own concerns:

- :class:`GeneratedImageStore` writes newly generated illustrations into a
  single write-once directory and returns the URL they are served under.
- :class:`FixtureStore` reads the pre-baked lesson fixtures used for demo
  personas and as the fallback when live generation fails.

Neither store keeps an index.  Generated images are named
``generated_<unix-ms>.<ext>`` so concurrent requests never rewrite each
other's files under normal clock resolution.
"""

from __future__ import annotations

import base64
import binascii
import io
import json
import logging
import time
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from dualclass.core.exceptions import FixtureError, NoImageDataError

logger = logging.getLogger(__name__)

# MIME type → file extension for the image formats the API returns.
_MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}

# Ordered (needle, fixture name) pairs.  The first needle contained in the
# lowercased persona selects the fixture.
DEMO_FIXTURES: tuple[tuple[str, str], ...] = (
    ("chef", "chef"),
    ("starship captain", "captain"),
    ("captain", "captain"),
)

FALLBACK_FIXTURE = "chef"


def extension_for_mime(mime_type: str | None) -> str:
    """Return the file extension for an image MIME type (``png`` if unknown)."""
    if not mime_type:
        return "png"
    return _MIME_EXTENSIONS.get(mime_type.lower().split(";")[0].strip(), "png")


def decode_image_data(data: bytes | str) -> bytes:
    """Normalise inline image data to raw bytes.

    The SDK returns raw bytes, while REST payloads carry base64 strings.

    Raises:
        NoImageDataError: If the data is empty or not valid base64.
    """
    if isinstance(data, str):
        try:
            data = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise NoImageDataError(f"Inline image data is not valid base64: {e}") from e
    if not data:
        raise NoImageDataError("Inline image data is empty")
    return data


class GeneratedImageStore:
    """Write-once store for generated images.

    Attributes:
        directory: Directory the images are written to.
        url_prefix: URL path the directory is served under.
    """

    def __init__(self, directory: Path, url_prefix: str = "/images/generated") -> None:
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, data: bytes | str, mime_type: str | None = "image/png") -> str:
        """Persist image bytes and return their URL.

        The bytes are decoded with Pillow before writing so a truncated or
        non-image payload is rejected instead of being served as a broken file.

        Args:
            data: Raw image bytes or a base64 string.
            mime_type: MIME type reported by the API, used for the extension.

        Returns:
            Relative URL such as ``/images/generated/generated_1700000000000.png``.

        Raises:
            NoImageDataError: If the payload is empty or not a decodable image.
            OSError: If the file cannot be written.
        """
        raw = decode_image_data(data)
        try:
            with Image.open(io.BytesIO(raw)) as image:
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise NoImageDataError(f"Inline data is not a decodable image: {e}") from e

        filename = f"generated_{int(time.time() * 1000)}.{extension_for_mime(mime_type)}"
        filepath = self.directory / filename
        filepath.write_bytes(raw)

        logger.info("Saved generated image to %s (%d bytes).", filepath, len(raw))
        return f"{self.url_prefix}/{filename}"


class FixtureStore:
    """Read-only store for pre-baked lesson fixtures.

    Fixtures are JSON documents named ``<name>_response.json`` inside the
    data directory.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def fixture_path(self, name: str) -> Path:
        """Return the path of the fixture called ``name``."""
        return self.data_dir / f"{name}_response.json"

    def match_demo_persona(self, persona: str) -> str | None:
        """Return the fixture name for a demo persona, or ``None``.

        Matching is a case-insensitive substring check evaluated in
        :data:`DEMO_FIXTURES` order, so "Head Chef" maps to ``chef`` and
        "Starship Captain" maps to ``captain``.
        """
        lowered = persona.lower()
        for needle, name in DEMO_FIXTURES:
            if needle in lowered:
                return name
        return None

    def load(self, name: str) -> dict:
        """Load a fixture by name.

        Raises:
            FixtureError: If the file is missing, unreadable, not valid JSON,
                or not a JSON object.
        """
        path = self.fixture_path(name)
        try:
            with open(path, encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            raise FixtureError(f"Cannot read fixture '{name}' from {path}: {e}") from e

        if not isinstance(payload, dict):
            raise FixtureError(f"Fixture '{name}' is not a JSON object")
        return payload

    def load_fallback(self) -> dict:
        """Load the fixture served when live generation fails."""
        return self.load(FALLBACK_FIXTURE)
