"""Image provider interface, OpenAI implementation and response normalisation.

The provider is an external black box: it accepts a prompt and a size and
answers with inline base64 bytes, a hosted URL, or (on a bad day) neither.
This module wraps that contract in three pieces:

:class:`ImageProvider`
    Abstract async interface.  Route handlers depend on it through FastAPI
    dependency injection, so tests swap in a fake that records calls.
:class:`OpenAIImageProvider`
    Production implementation on top of the ``openai`` async SDK.  Every
    call carries an explicit timeout and a bounded SDK-level retry for
    transient failures.  SDK exceptions are translated into
    :class:`~cardsforcare.core.errors.CardGenerationError` kinds.
:func:`normalize_image`
    Turns the raw :class:`ProviderImage` into a tagged
    :data:`GenerationResult` (``InlineImage`` or ``RemoteImage``) according
    to the deployment's ``remote_image_policy``.

Remote Image Policy
-------------------
``"inline"``
    The hosted URL is downloaded with ``httpx`` and re-encoded as a
    ``data:`` URI.  Clients never see the provider's URL or its expiry.
``"passthrough"``
    The URL is returned unchanged in ``{"imageUrl": ...}``.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from typing import Annotated, Literal

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from .config import CardsConfig, RemoteImagePolicy
from .errors import CardGenerationError, ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


# ---------------------------------------------------------------------------
# Result shapes.
# ---------------------------------------------------------------------------


class ProviderImage(BaseModel):
    """Raw image reference as returned by a provider.

    Attributes:
        b64_json: Inline base64-encoded image bytes, if present.
        url: Provider-hosted image URL, if present.
        mime_type: MIME type declared by the provider, if any.
        raw: Serialised provider response, kept for diagnostics when the
            response carries no usable image.
    """

    b64_json: str | None = None
    url: str | None = None
    mime_type: str | None = None
    raw: str = ""


class InlineImage(BaseModel):
    """Image embedded as a base64 ``data:`` URI."""

    kind: Literal["inline"] = "inline"
    data_url: str

    def to_response(self) -> dict[str, str]:
        return {"imageDataUrl": self.data_url}


class RemoteImage(BaseModel):
    """Image hosted by the provider."""

    kind: Literal["remote"] = "remote"
    url: str

    def to_response(self) -> dict[str, str]:
        return {"imageUrl": self.url}


GenerationResult = Annotated[InlineImage | RemoteImage, Field(discriminator="kind")]


def make_data_url(b64_data: str, mime_type: str | None = None) -> str:
    """Build a ``data:<mime>;base64,<payload>`` URI."""
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{b64_data}"


# ---------------------------------------------------------------------------
# Provider interface.
# ---------------------------------------------------------------------------


class ImageProvider(ABC):
    """Base interface for image generation providers."""

    provider_name: str = "base"

    @abstractmethod
    async def generate(self, prompt: str, size: str) -> ProviderImage:
        """Submit *prompt* and return whatever image reference came back.

        Raises:
            CardGenerationError: With a ``PROVIDER_*`` kind on timeout,
                network failure or provider rejection.
        """


class OpenAIImageProvider(ImageProvider):
    """OpenAI Images API provider (``images.generate``)."""

    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-image-1",
        timeout: float = 60.0,
        max_retries: int = 1,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries

    @classmethod
    def from_config(cls, config: CardsConfig) -> OpenAIImageProvider:
        """Create a provider from settings.

        Raises:
            CardGenerationError: ``CONFIG_MISSING`` if no API key is set.
        """
        api_key = config.api_key
        if not api_key:
            raise CardGenerationError(ErrorKind.CONFIG_MISSING)
        return cls(
            api_key=api_key,
            model=config.image_model,
            timeout=config.provider_timeout_seconds,
            max_retries=config.provider_max_retries,
        )

    def _get_client(self) -> AsyncOpenAI:
        # The SDK retries connection errors, 408/409/429 and 5xx with backoff.
        return AsyncOpenAI(
            api_key=self.api_key,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    async def generate(self, prompt: str, size: str) -> ProviderImage:
        client = self._get_client()
        logger.info("Generating image via OpenAI model=%s size=%s", self.model, size)

        try:
            result = await client.images.generate(
                model=self.model,
                prompt=prompt,
                size=size,
            )
        except openai.APITimeoutError as exc:
            raise CardGenerationError(ErrorKind.PROVIDER_TIMEOUT, str(exc)) from exc
        except openai.APIConnectionError as exc:
            raise CardGenerationError(ErrorKind.PROVIDER_UNREACHABLE, str(exc)) from exc
        except openai.APIStatusError as exc:
            kind = ErrorKind.PROVIDER_UNREACHABLE if exc.status_code >= 500 else ErrorKind.PROVIDER_REJECTED
            raise CardGenerationError(kind, f"{exc.status_code}: {exc.message}") from exc
        finally:
            await client.close()

        first = result.data[0] if result.data else None
        output_format = getattr(result, "output_format", None)
        image = ProviderImage(
            b64_json=getattr(first, "b64_json", None),
            url=getattr(first, "url", None),
            mime_type=f"image/{output_format}" if output_format else None,
        )
        if not image.b64_json and not image.url:
            image.raw = result.model_dump_json(exclude_none=True)
        return image


def get_provider(config: CardsConfig) -> ImageProvider:
    """Return the configured provider.  Replaced via dependency overrides in tests."""
    return OpenAIImageProvider.from_config(config)


# ---------------------------------------------------------------------------
# Normalisation.
# ---------------------------------------------------------------------------


async def fetch_as_data_url(
    url: str,
    *,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Download *url* and re-encode it as a ``data:`` URI.

    The MIME type comes from the ``Content-Type`` header when it names an
    image type, otherwise ``image/png`` is assumed.

    Args:
        url: Provider-hosted image URL.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (used by tests).

    Returns:
        The encoded ``data:`` URI.

    Raises:
        CardGenerationError: ``PROVIDER_TIMEOUT`` on timeout,
            ``PROVIDER_UNREACHABLE`` on network or HTTP errors,
            ``PROVIDER_EMPTY_RESPONSE`` if the download has no body.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout, transport=transport, follow_redirects=True
        ) as http:
            resp = await http.get(url)
            resp.raise_for_status()
    except httpx.TimeoutException as exc:
        raise CardGenerationError(ErrorKind.PROVIDER_TIMEOUT, f"Image download timed out: {exc}") from exc
    except httpx.HTTPStatusError as exc:
        raise CardGenerationError(
            ErrorKind.PROVIDER_UNREACHABLE,
            f"Image download failed with HTTP {exc.response.status_code}",
        ) from exc
    except httpx.HTTPError as exc:
        raise CardGenerationError(ErrorKind.PROVIDER_UNREACHABLE, f"Image download failed: {exc}") from exc

    if not resp.content:
        raise CardGenerationError(ErrorKind.PROVIDER_EMPTY_RESPONSE, "Image download returned an empty body")

    mime_type = resp.headers.get("content-type", "").split(";")[0].strip().lower()
    if not mime_type.startswith("image/"):
        mime_type = DEFAULT_MIME_TYPE

    return make_data_url(base64.b64encode(resp.content).decode("ascii"), mime_type)


async def normalize_image(
    image: ProviderImage,
    *,
    policy: RemoteImagePolicy,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GenerationResult:
    """Convert a raw provider response into a :data:`GenerationResult`.

    Inline bytes always win over a URL.  A URL is either re-encoded or
    passed through depending on *policy*.

    Raises:
        CardGenerationError: ``PROVIDER_EMPTY_RESPONSE`` (with the raw
            response as a truncated diagnostic) if neither representation is
            present, or any error raised while downloading the URL.
    """
    if image.b64_json:
        return InlineImage(data_url=make_data_url(image.b64_json, image.mime_type))

    if image.url:
        if policy == "passthrough":
            return RemoteImage(url=image.url)
        data_url = await fetch_as_data_url(image.url, timeout=timeout, transport=transport)
        return InlineImage(data_url=data_url)

    raise CardGenerationError(ErrorKind.PROVIDER_EMPTY_RESPONSE, image.raw or None)
