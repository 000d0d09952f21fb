"""Configuration management for the Cards for Care API.

This module provides centralized configuration management using Pydantic Settings.
Configuration is loaded from environment variables with the CARDS_ prefix, with
one exception: the provider credential is read from the conventional
``OPENAI_API_KEY`` variable so the service drops into existing deployments
without renaming secrets.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (CARDS_* prefix, plus OPENAI_API_KEY)
2. .env file in the working directory
3. Default values defined in CardsConfig

Example .env file:
    OPENAI_API_KEY=sk-...
    CARDS_IMAGE_SIZE=1024x1536
    CARDS_REMOTE_IMAGE_POLICY=inline
    CARDS_ALLOWED_ORIGINS=["https://airplanegirl.com"]

Request-Time Loading
--------------------
Unlike a long-running app server with a fixed configuration, the generate
endpoint loads its settings once per request through :func:`get_config`.  A
credential added to the environment is therefore picked up without a
restart, and a missing credential is reported on the request that needs it.

The module-level ``config`` instance is still created at import time and is
used by the ``cardsforcare`` CLI for server host, port and log level.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ImageSize = Literal["1024x1024", "1024x1536", "1024x1792", "1536x1024", "1792x1024"]
RemoteImagePolicy = Literal["inline", "passthrough"]

DEFAULT_ALLOWED_ORIGINS = (
    "https://airplanegirl.com",
    "https://www.airplanegirl.com",
)


class CardsConfig(BaseSettings):
    """Main configuration for the Cards for Care API.

    Attributes
    ----------
    Provider Settings:
        openai_api_key : str | None
            Image provider credential.  Absence short-circuits every
            generation request to a 500 before the provider is contacted.
        image_model : str
            Provider model identifier.
        image_size : ImageSize
            Fixed output size sent with every generation call.
        provider_timeout_seconds : float
            Timeout applied to the generation call and the optional image
            download.
        provider_max_retries : int
            Bounded retries for transient provider failures (connection
            errors and 5xx).  Client errors are never retried.
        generation_deadline_seconds : float
            Upper bound on one generation request, covering every provider
            attempt plus the optional download.  Without it the worst case
            is ``provider_timeout_seconds * (provider_max_retries + 2)``.
        remote_image_policy : RemoteImagePolicy
            What to do when the provider answers with a hosted URL instead of
            inline bytes: ``"inline"`` downloads and re-encodes it as a
            ``data:`` URI, ``"passthrough"`` returns the URL as-is.

    Request Gate:
        allowed_origins : list[str]
            Origins echoed back in ``Access-Control-Allow-Origin``.
        options_file : Path | None
            Optional JSON file replacing the default dropdown allow-lists.

    Server Settings:
        server_host : str
            Bind address for the ``cardsforcare`` CLI.
        server_port : int
            Port for the ``cardsforcare`` CLI (1024-65535).
        log_level : str
            Root log level configured by the CLI.

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = CardsConfig(
        ...     openai_api_key="sk-test",
        ...     remote_image_policy="passthrough",
        ...     _env_file=None,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CARDS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider settings
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "OPENAI_API_KEY", "CARDS_OPENAI_API_KEY"),
        description="Image provider API key",
    )
    image_model: str = Field(
        default="gpt-image-1",
        description="Image generation model identifier",
    )
    image_size: ImageSize = Field(
        default="1024x1536",
        description="Output image size (width x height)",
    )
    provider_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout for outbound provider calls, in seconds",
        gt=0,
        le=300,
    )
    provider_max_retries: int = Field(
        default=1,
        description="Retries for transient provider failures",
        ge=0,
        le=3,
    )
    generation_deadline_seconds: float = Field(
        default=120.0,
        description="Overall deadline for generation plus image download, in seconds",
        gt=0,
        le=600,
    )
    remote_image_policy: RemoteImagePolicy = Field(
        default="inline",
        description="Re-encode provider URLs as data URIs ('inline') or return them ('passthrough')",
    )

    # Request gate
    allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS),
        description="Front-end origins allowed to call the API",
    )
    options_file: Path | None = Field(
        default=None,
        description="JSON file overriding the dropdown allow-lists",
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
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    @property
    def api_key(self) -> str | None:
        """The provider credential with surrounding whitespace removed, or ``None``."""
        if self.openai_api_key is None:
            return None
        return self.openai_api_key.strip() or None

    @property
    def image_dimensions(self) -> tuple[int, int]:
        """``image_size`` parsed into ``(width, height)``."""
        width, height = self.image_size.split("x")
        return int(width), int(height)


def get_config() -> CardsConfig:
    """Load a fresh configuration for the current request.

    Installed as ``app.state.config_loader``; the request middleware calls
    it once per request.
    """
    return CardsConfig()


# Global configuration instance used by the CLI entry point.
config = CardsConfig()
