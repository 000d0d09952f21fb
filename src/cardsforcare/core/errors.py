"""Error kinds for card generation.

Every failure the generate endpoint can report is one of a small, closed set
of :class:`ErrorKind` values.  The kind decides the HTTP status and the short
public message; the optional ``details`` string carries a bounded diagnostic.
"""

from __future__ import annotations

from enum import Enum

#: Maximum length of any diagnostic echoed back to the caller.
MAX_DETAILS_LENGTH = 600


class ErrorKind(str, Enum):
    """Closed enumeration of card generation failures."""

    CONFIG_MISSING = "config_missing"
    VALIDATION_FAILED = "validation_failed"
    PROVIDER_UNREACHABLE = "provider_unreachable"
    PROVIDER_TIMEOUT = "provider_timeout"
    PROVIDER_REJECTED = "provider_rejected"
    PROVIDER_EMPTY_RESPONSE = "provider_empty_response"

    @property
    def status_code(self) -> int:
        if self is ErrorKind.VALIDATION_FAILED:
            return 400
        return 500

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.CONFIG_MISSING: "Missing OPENAI_API_KEY environment variable.",
    ErrorKind.VALIDATION_FAILED: "Invalid input",
    ErrorKind.PROVIDER_UNREACHABLE: "Image provider unreachable",
    ErrorKind.PROVIDER_TIMEOUT: "Image generation timed out",
    ErrorKind.PROVIDER_REJECTED: "Image provider rejected the request",
    ErrorKind.PROVIDER_EMPTY_RESPONSE: "Image provider returned no image data.",
}


def truncate_details(text: str, limit: int = MAX_DETAILS_LENGTH) -> str:
    """Cap a diagnostic string at *limit* characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class CardGenerationError(Exception):
    """Raised for any expected failure while handling a card request.

    Attributes:
        kind: The failure category.
        details: Optional diagnostic, already truncated.
    """

    def __init__(self, kind: ErrorKind, details: str | None = None) -> None:
        super().__init__(kind.message if details is None else f"{kind.message}: {details}")
        self.kind = kind
        self.details = truncate_details(details) if details is not None else None

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_payload(self) -> dict[str, str]:
        """Render the public ``{"error", "details"?}`` envelope."""
        payload = {"error": self.kind.message}
        if self.details:
            payload["details"] = self.details
        return payload
