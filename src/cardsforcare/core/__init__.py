"""Core functionality for greeting card image generation.

- **config**: Environment-driven settings (``CARDS_`` prefix) via Pydantic Settings
- **options**: Immutable dropdown allow-lists and their JSON loader
- **errors**: Closed error-kind enumeration and :class:`CardGenerationError`
- **provider**: Image provider interface, OpenAI implementation and the
  response normaliser that produces inline or remote image results
"""

from .config import CardsConfig, config, get_config
from .errors import CardGenerationError, ErrorKind
from .options import DEFAULT_CARD_OPTIONS, CardOptions, load_card_options
from .provider import (
    ImageProvider,
    InlineImage,
    OpenAIImageProvider,
    ProviderImage,
    RemoteImage,
    normalize_image,
)

__all__ = [
    "CardGenerationError",
    "CardOptions",
    "CardsConfig",
    "DEFAULT_CARD_OPTIONS",
    "ErrorKind",
    "ImageProvider",
    "InlineImage",
    "OpenAIImageProvider",
    "ProviderImage",
    "RemoteImage",
    "config",
    "get_config",
    "load_card_options",
    "normalize_image",
]
