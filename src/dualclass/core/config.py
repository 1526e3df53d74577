"""Configuration management for Dual Class.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the DUALCLASS_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (DUALCLASS_* prefix)
2. .env file in the project root
3. Default values defined in DualClassConfig

Example .env file:
    DUALCLASS_GEMINI_API_KEY=your-key-here
    DUALCLASS_TEXT_MODEL=gemini-3-pro-preview
    DUALCLASS_IMAGE_MODEL=gemini-3-pro-image-preview
    DUALCLASS_SERVER_PORT=8000

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from dualclass.core.config import config

    print(config.text_model)
    print(config.generated_dir)

Directory Layout
----------------
All assets live under ``static_dir``, which is mounted at ``/`` by the API:

- ``static_dir/data``: pre-baked lesson fixtures (``chef_response.json``, ...)
- ``static_dir/images``: fallback and placeholder illustrations
- ``static_dir/images/generated``: write-once directory for generated images

The generated directory is created on initialization. Fixtures are read-only
at request time.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_STATIC_DIR = Path(__file__).resolve().parents[1] / "static"


class DualClassConfig(BaseSettings):
    """Main configuration for Dual Class.

    Values are loaded from environment variables with the DUALCLASS_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Generative API Settings:
        gemini_api_key : str | None
            API key for the Gemini API. Also read from GOOGLE_GEMINI_API_KEY
            by :class:`~dualclass.core.model_client.ModelClient` when unset.
        text_model : str
            Model used for metaphor and error-mirror JSON generation
        image_model : str
            Model used for illustration generation

    Lesson Settings:
        demo_mode : bool
            Serve pre-baked fixtures for demo personas instead of calling the API
        fallback_image_url : str
            Image URL used when live illustration generation fails
        captain_fallback_image_url : str
            Image URL used instead of ``fallback_image_url`` for
            captain-themed personas
        placeholder_image_url : str
            Image URL substituted for a failed error-mirror image slot

    Paths:
        static_dir : Path
            Root of the static assets served by the API
        data_dir : Path
            Directory holding the lesson fixtures
        generated_dir : Path
            Directory where generated images are written

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root logging level configured by the CLI entry point

    Examples
    --------
        >>> custom = DualClassConfig(demo_mode=False, server_port=9000)
        >>> custom.data_dir.name
        'data'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DUALCLASS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Generative API settings
    gemini_api_key: str | None = Field(
        default=None,
        description="Gemini API key (falls back to GOOGLE_GEMINI_API_KEY)",
    )
    text_model: str = Field(
        default="gemini-3-pro-preview",
        description="Model used for structured text generation",
    )
    image_model: str = Field(
        default="gemini-3-pro-image-preview",
        description="Model used for image generation",
    )

    # Lesson settings
    demo_mode: bool = Field(
        default=True,
        description="Serve fixtures for demo personas (chef, captain)",
    )
    fallback_image_url: str = Field(
        default="/images/chef_attention.png",
        description="Illustration used when live image generation fails",
    )
    captain_fallback_image_url: str = Field(
        default="/images/captain_attention.png",
        description="Illustration used for captain-themed personas when generation fails",
    )
    placeholder_image_url: str = Field(
        default="/images/error_placeholder.png",
        description="Image used for a failed error-mirror slot",
    )

    # Paths
    static_dir: Path = Field(
        default=_PACKAGE_STATIC_DIR,
        description="Root directory of static assets",
    )
    data_dir: Path | None = Field(
        default=None,
        description="Lesson fixture directory (defaults to static_dir/data)",
    )
    generated_dir: Path | None = Field(
        default=None,
        description="Generated image directory (defaults to static_dir/images/generated)",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for the CLI entry point",
    )

    def __init__(self, **kwargs):
        """Initialize configuration, resolve derived paths and create directories.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        # Derived paths follow static_dir unless overridden explicitly
        if self.data_dir is None:
            self.data_dir = self.static_dir / "data"
        if self.generated_dir is None:
            self.generated_dir = self.static_dir / "images" / "generated"

        self.generated_dir.mkdir(parents=True, exist_ok=True)

    @property
    def generated_url_prefix(self) -> str:
        """URL prefix under which generated images are served."""
        try:
            relative = self.generated_dir.resolve().relative_to(self.static_dir.resolve())
        except ValueError:
            return "/images/generated"
        return "/" + relative.as_posix()


# Global configuration instance
config = DualClassConfig()
