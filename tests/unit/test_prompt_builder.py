"""Unit tests for greeting card prompt compilation."""

import pytest

from cardsforcare.api.models import CardRequest
from cardsforcare.api.prompt_builder import build_card_prompt, orientation_for_size


@pytest.fixture
def card(valid_card) -> CardRequest:
    return CardRequest.model_validate(valid_card)


class TestBuildCardPrompt:
    """Tests for build_card_prompt."""

    def test_deterministic(self, card):
        """The same request should always produce identical text."""
        assert build_card_prompt(card) == build_card_prompt(card)
        again = CardRequest.model_validate(card.model_dump(by_alias=True))
        assert build_card_prompt(again) == build_card_prompt(card)

    def test_headline_is_upper_cased(self, card):
        """The card type should appear upper-cased as the quoted headline."""
        prompt = build_card_prompt(card)
        assert 'Headline text (must be readable): "WELCOME HOME".' in prompt
        assert "Welcome Home" not in prompt

    def test_only_headline_is_literal_text(self, card):
        """The prompt should forbid any on-image text beyond the headline."""
        prompt = build_card_prompt(card)
        assert "only text on the card" in prompt
        assert prompt.count('"') == 2

    def test_context_fields_included(self, card):
        """Recipient, theme and vibe should be given as context lines."""
        prompt = build_card_prompt(card)
        assert "Recipient: Grandma." in prompt
        assert "Theme: Cute Animals." in prompt
        assert "Vibe: Calm & gentle." in prompt

    def test_design_rules(self, card):
        """Every card prompt should carry the fixed design rules."""
        prompt = build_card_prompt(card)
        assert "Design rules:" in prompt
        assert "single flat, front-facing card" in prompt
        assert "no mockups" in prompt
        assert "no folded cards" in prompt
        assert "safe margins" in prompt
        assert "appropriate for all ages" in prompt
        assert "No logos, no brands, no watermarks." in prompt
        assert "No real people or photoreal faces." in prompt

    def test_orientation(self, card):
        """The orientation should be stated in the first line."""
        first_line = build_card_prompt(card, orientation="landscape").splitlines()[0]
        assert first_line == "Create a greeting card FRONT design (landscape)."

    def test_unicode_recipient_preserved(self):
        """The typographic apostrophe should pass through unchanged."""
        card = CardRequest(
            cardType="Thinking of You",
            whoFor="Someone you don’t know (community card)",
            theme="Outer Space",
            vibe="Cheerful & silly",
        )
        prompt = build_card_prompt(card)
        assert "Recipient: Someone you don’t know (community card)." in prompt
        assert '"THINKING OF YOU"' in prompt


class TestOrientationForSize:
    """Tests for orientation_for_size."""

    @pytest.mark.parametrize(
        "width, height, expected",
        [
            (1024, 1536, "portrait"),
            (1024, 1792, "portrait"),
            (1024, 1024, "square"),
            (1536, 1024, "landscape"),
        ],
    )
    def test_orientation_for_size(self, width, height, expected):
        assert orientation_for_size(width, height) == expected
