"""Exception hierarchy for Dual Class.

Every error raised by the generation pipeline derives from
:class:`DualClassError` so that callers can choose between catching a
specific failure (``NoImageDataError``) or the whole family.

Hierarchy::

    DualClassError
    ├── ValidationError      missing or invalid request fields (HTTP 400)
    ├── ModelError           generative API rejected the call or returned junk
    │   ├── ParseError       no JSON object could be extracted from model text
    │   └── NoImageDataError image response contained no inline image part
    └── FixtureError         a static fixture could not be read or decoded
"""


class DualClassError(Exception):
    """Base class for all Dual Class errors."""


class ValidationError(DualClassError):
    """User-facing validation error.

    The message is intended to be returned to the client directly.
    """


class ModelError(DualClassError):
    """The text or image generation capability failed or returned an unusable payload."""


class ParseError(ModelError):
    """Neither a fenced block nor the raw model text parsed as a JSON object."""


class NoImageDataError(ModelError):
    """The image generation response contained no inline image data."""


class FixtureError(DualClassError):
    """A static lesson fixture is missing or malformed."""
