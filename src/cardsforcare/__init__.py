"""Cards for Care - greeting card image generation API."""

__version__ = "0.1.0"
