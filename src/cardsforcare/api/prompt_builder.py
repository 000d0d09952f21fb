"""Greeting card prompt compilation.

The prompt is assembled from the four validated card choices plus a fixed
block of design rules.  Only the card-type label is meant to appear as text
in the image; recipient, theme and vibe are creative direction.

Template Structure::

    Create a greeting card FRONT design ([orientation]).
    Headline text (must be readable): "[CARD TYPE, UPPER-CASED]".
    [Fixed: headline is the only text]
    Recipient: [who_for].
    Theme: [theme].
    Vibe: [vibe].

    Design rules:
    [Fixed: rule bullets]

Usage
-----
::

    card = parse_card_request(body, options)
    compiled = build_card_prompt(card, orientation="portrait")
"""

from __future__ import annotations

from typing import Literal

from cardsforcare.api.models import CardRequest

Orientation = Literal["portrait", "landscape", "square"]

# ---------------------------------------------------------------------------
# Fixed sections.
# These are product requirements for every card, so they are constants
# rather than configuration.
# ---------------------------------------------------------------------------

_TEXT_RULE = (
    "The headline is the only text on the card. Do not write the recipient, "
    "theme, or vibe as words anywhere in the image."
)

_DESIGN_RULES = (
    "- One single flat, front-facing card design that fills the canvas: "
    "no multiple panels, no mockups, no folded cards, no photographs of cards.",
    "- Print-friendly with safe margins (no text or important artwork near the edges).",
    "- Kind, uplifting, respectful, appropriate for all ages.",
    "- No logos, no brands, no watermarks.",
    "- No real people or photoreal faces.",
)


def orientation_for_size(width: int, height: int) -> Orientation:
    """Describe an output size as portrait, landscape or square."""
    if width == height:
        return "square"
    return "portrait" if height > width else "landscape"


def build_card_prompt(card: CardRequest, *, orientation: Orientation = "portrait") -> str:
    """Compile the image-generation prompt for a validated card request.

    The output is deterministic: the same request and orientation always
    produce byte-identical text.

    Args:
        card: A validated :class:`CardRequest`.
        orientation: Canvas orientation, normally derived from the
            configured image size with :func:`orientation_for_size`.

    Returns:
        The prompt, one instruction per line.
    """
    lines = [
        f"Create a greeting card FRONT design ({orientation}).",
        f'Headline text (must be readable): "{card.card_type.upper()}".',
        _TEXT_RULE,
        f"Recipient: {card.who_for}.",
        f"Theme: {card.theme}.",
        f"Vibe: {card.vibe}.",
        "",
        "Design rules:",
        *_DESIGN_RULES,
    ]
    return "\n".join(lines)
