"""Pydantic request and response models for the Cards for Care API.

Models
------
CardRequest
    Payload for ``POST /generate``.  An instance only exists once every
    field has been checked against the active :class:`CardOptions`, so the
    prompt builder can accept it without re-validating.
HealthResponse
    Body of ``GET /generate``.
ErrorResponse
    The ``{"error", "details"?}`` envelope used for every failure.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from cardsforcare.core.errors import CardGenerationError, ErrorKind
from cardsforcare.core.options import DEFAULT_CARD_OPTIONS, CardOptions

logger = logging.getLogger(__name__)


class CardRequest(BaseModel):
    """Request body for the ``POST /generate`` endpoint.

    Every field must be a string that exactly matches an entry in its
    allow-list.  Case and whitespace are not normalised, and unknown extra
    fields are ignored.

    The allow-lists come from the ``options`` key of the validation context
    (see :func:`parse_card_request`); without a context the built-in
    :data:`DEFAULT_CARD_OPTIONS` apply.

    Attributes:
        card_type: Headline label, rendered upper-cased on the card.
        who_for: Recipient description (creative context only).
        theme: Artwork theme.
        vibe: Overall mood.
    """

    model_config = ConfigDict(
        frozen=True,
        strict=True,
        extra="ignore",
    )

    card_type: str = Field(..., alias="cardType", description="Card headline label.")
    who_for: str = Field(..., alias="whoFor", description="Who the card is for.")
    theme: str = Field(..., description="Artwork theme.")
    vibe: str = Field(..., description="Overall mood of the card.")

    @field_validator("card_type", "who_for", "theme", "vibe")
    @classmethod
    def _check_allow_list(cls, value: str, info: ValidationInfo) -> str:
        options: CardOptions = (info.context or {}).get("options") or DEFAULT_CARD_OPTIONS
        if not options.is_allowed(info.field_name, value):
            raise ValueError(f"{info.field_name} is not an allowed option")
        return value


def parse_card_request(body: Any, options: CardOptions = DEFAULT_CARD_OPTIONS) -> CardRequest:
    """Validate an arbitrary request body into a :class:`CardRequest`.

    Args:
        body: Decoded JSON body.  ``None`` (no body) is treated as an empty
            object so that every field reports as missing.
        options: Allow-lists to validate against.

    Returns:
        The validated request.

    Raises:
        CardGenerationError: ``VALIDATION_FAILED`` if any field is missing,
            not a string, or not in its allow-list.
    """
    if body is None:
        body = {}
    try:
        return CardRequest.model_validate(body, context={"options": options})
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]}) or ["<body>"]
        logger.info("Rejected card request; invalid fields: %s", ", ".join(fields))
        raise CardGenerationError(ErrorKind.VALIDATION_FAILED) from exc


class HealthResponse(BaseModel):
    """Body of the ``GET /generate`` liveness check."""

    ok: bool = True
    message: str = "Cards for Care API is running. Send a POST to generate an image."


class ErrorResponse(BaseModel):
    """Error envelope returned for every non-2xx response."""

    error: str
    details: str | None = None
