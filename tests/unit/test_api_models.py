"""Tests for cardsforcare.api.models — Pydantic request/response models.

Tests cover:
- CardRequest validation against the default and injected allow-lists.
- Alias handling (camelCase body keys, snake_case attributes).
- parse_card_request error translation.
- Response envelope defaults.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cardsforcare.api.models import CardRequest, ErrorResponse, HealthResponse, parse_card_request
from cardsforcare.core.errors import CardGenerationError, ErrorKind
from cardsforcare.core.options import CardOptions


class TestCardRequest:
    """Test CardRequest Pydantic model."""

    def test_valid_request_by_alias(self, valid_card):
        """camelCase keys should populate snake_case attributes."""
        req = CardRequest.model_validate(valid_card)
        assert req.card_type == "Welcome Home"
        assert req.who_for == "Grandma"
        assert req.theme == "Cute Animals"
        assert req.vibe == "Calm & gentle"

    def test_valid_request_by_json_names(self):
        """Keyword construction should use the JSON field names."""
        req = CardRequest(cardType="Congratulations", whoFor="Friend", theme="Robots", vibe="Bold & inspiring")
        assert req.card_type == "Congratulations"

    def test_attribute_names_are_not_field_names(self, valid_card):
        """snake_case keys are unknown extras, so cardType and whoFor count as missing."""
        body = {
            "card_type": valid_card["cardType"],
            "who_for": valid_card["whoFor"],
            "theme": valid_card["theme"],
            "vibe": valid_card["vibe"],
        }
        with pytest.raises(ValidationError):
            CardRequest.model_validate(body)

    def test_direct_construction_is_validated(self):
        """An out-of-list value cannot produce an instance."""
        with pytest.raises(ValidationError):
            CardRequest(cardType="Happy Birthday", whoFor="Friend", theme="Robots", vibe="Bold & inspiring")

    def test_non_string_rejected(self, valid_card):
        """Strict mode should reject values that are not strings."""
        valid_card["vibe"] = 1
        with pytest.raises(ValidationError):
            CardRequest.model_validate(valid_card)

    def test_request_is_frozen(self, valid_card):
        """Validated requests should be immutable."""
        req = CardRequest.model_validate(valid_card)
        with pytest.raises(ValidationError):
            req.card_type = "Anything"

    def test_context_options_replace_defaults(self):
        """Allow-lists passed in the validation context should be used."""
        options = CardOptions(card_type=("Get Well Soon",), who_for=("Neighbour",), theme=("Robots",), vibe=("Calm",))
        body = {"cardType": "Get Well Soon", "whoFor": "Neighbour", "theme": "Robots", "vibe": "Calm"}
        req = CardRequest.model_validate(body, context={"options": options})
        assert req.card_type == "Get Well Soon"

        with pytest.raises(ValidationError):
            CardRequest.model_validate(body)


class TestParseCardRequest:
    """Test parse_card_request."""

    def test_returns_card_request(self, valid_card):
        """A valid body should return a CardRequest."""
        assert isinstance(parse_card_request(valid_card), CardRequest)

    def test_none_body_fails(self):
        """A missing body should fail validation."""
        with pytest.raises(CardGenerationError) as exc_info:
            parse_card_request(None)
        assert exc_info.value.kind is ErrorKind.VALIDATION_FAILED
        assert exc_info.value.status_code == 400

    def test_non_mapping_body_fails(self):
        """A body that is not an object should fail validation."""
        with pytest.raises(CardGenerationError):
            parse_card_request("Welcome Home")

    def test_error_payload_has_no_details(self, valid_card):
        """Validation failures expose only the generic message."""
        valid_card["theme"] = "Dragons"
        with pytest.raises(CardGenerationError) as exc_info:
            parse_card_request(valid_card)
        assert exc_info.value.to_payload() == {"error": "Invalid input"}

    def test_extra_keys_ignored(self, valid_card):
        """Extra keys should not cause a failure."""
        valid_card["extra"] = {"nested": True}
        req = parse_card_request(valid_card)
        assert not hasattr(req, "extra")


class TestResponseModels:
    """Test HealthResponse and ErrorResponse."""

    def test_health_defaults(self):
        """HealthResponse should default to ok=True with a message."""
        health = HealthResponse()
        assert health.ok is True
        assert "POST" in health.message

    def test_error_details_optional(self):
        """ErrorResponse details should default to None."""
        assert ErrorResponse(error="Invalid input").details is None
