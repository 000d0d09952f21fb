"""Dropdown allow-lists for greeting card requests.

The four form fields are constrained to fixed option sets.  They are held in
an immutable :class:`CardOptions` value rather than module-level lists so the
validator and the ``/api/options`` endpoint can be handed an alternate set
(for tests, or a deployment-specific ``options_file``).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

#: Request field names, in the order the front-end renders them.
CARD_FIELDS: tuple[str, ...] = ("card_type", "who_for", "theme", "vibe")


class CardOptions(BaseModel):
    """Immutable set of allowed values for each card field.

    Attributes:
        card_type: Card headline labels.
        who_for: Recipient descriptions.
        theme: Artwork themes.
        vibe: Overall mood.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    card_type: tuple[str, ...] = Field(..., alias="cardType", min_length=1)
    who_for: tuple[str, ...] = Field(..., alias="whoFor", min_length=1)
    theme: tuple[str, ...] = Field(..., min_length=1)
    vibe: tuple[str, ...] = Field(..., min_length=1)

    def allowed(self, field: str) -> tuple[str, ...]:
        """Return the allow-list for *field* (a name from :data:`CARD_FIELDS`)."""
        if field not in CARD_FIELDS:
            raise KeyError(field)
        return getattr(self, field)

    def is_allowed(self, field: str, value: object) -> bool:
        """Exact, case-sensitive membership test.  Non-strings never match."""
        return isinstance(value, str) and value in self.allowed(field)


DEFAULT_CARD_OPTIONS = CardOptions(
    card_type=(
        "Welcome Home",
        "Thank You So Much",
        "Happy Holidays",
        "Thinking of You",
        "Congratulations",
    ),
    who_for=(
        "Someone you don’t know (community card)",
        "A new resident",
        "A senior in an elder care home",
        "Grandma",
        "Grandpa",
        "Friend",
    ),
    theme=(
        "Outer Space",
        "Nature / Flowers",
        "Cute Animals",
        "Robots",
        "Festive Minimalist",
        "Anime",
    ),
    vibe=("Calm & gentle", "Cheerful & silly", "Bold & inspiring"),
)


def load_card_options(path: Path | None) -> CardOptions:
    """Load allow-lists from a JSON file, or return the defaults.

    The file uses the same camelCase keys as the request body::

        {"cardType": [...], "whoFor": [...], "theme": [...], "vibe": [...]}

    Unlike request parsing, a broken options file is a deployment error and
    is not silently replaced by the defaults.

    Args:
        path: Location of the JSON file, or ``None`` for the built-in set.

    Returns:
        The loaded :class:`CardOptions`.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or misses a field.
    """
    if path is None:
        return DEFAULT_CARD_OPTIONS

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    options = CardOptions.model_validate(data)
    logger.info("Loaded card options from %s", path)
    return options
