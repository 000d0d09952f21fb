"""Cards for Care — FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, the card generation routes, the error envelope
handlers, and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The service is stateless and request-scoped:

- **Configuration** is loaded once per request from environment variables
  by the CORS middleware (through ``app.state.config_loader``, which
  defaults to :func:`~cardsforcare.core.config.get_config`) and handed to
  the routes as ``request.state.config``.
- **Validation** parses the JSON body into a
  :class:`~cardsforcare.api.models.CardRequest` against the active
  allow-lists.
- **Generation** is delegated to an
  :class:`~cardsforcare.core.provider.ImageProvider`; the raw response is
  normalised into an inline ``data:`` URI or a remote URL.
- **CORS** is enforced by a middleware that runs before routing (see
  :mod:`cardsforcare.api.cors`).

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
OPTIONS   any                           CORS preflight (empty 204)
GET       ``/generate``                 Health check
POST      ``/generate``                 Generate a card image
GET       ``/api/generate-card``        Health check (legacy path)
POST      ``/api/generate-card``        Generate a card image (legacy path)
GET       ``/api/options``              Dropdown allow-lists
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    cardsforcare

Direct invocation::

    python -m cardsforcare.api.main
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cardsforcare import __version__
from cardsforcare.api.cors import make_cors_middleware
from cardsforcare.api.models import ErrorResponse, HealthResponse, parse_card_request
from cardsforcare.api.prompt_builder import build_card_prompt, orientation_for_size
from cardsforcare.core.config import CardsConfig, config, get_config
from cardsforcare.core.errors import CardGenerationError, ErrorKind
from cardsforcare.core.options import CardOptions, load_card_options
from cardsforcare.core.provider import GenerationResult, ImageProvider, get_provider, normalize_image

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Cards for Care API",
    description="Generates greeting card front images from a fixed set of dropdown choices.",
    version=__version__,
)


# Settings are loaded once per request by the CORS middleware through this
# loader and shared with the route dependencies via ``request.state.config``.
app.state.config_loader = get_config


def _load_request_config(request: Request) -> CardsConfig:
    return request.app.state.config_loader()


app.middleware("http")(make_cors_middleware(_load_request_config))


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_request_config(request: Request) -> CardsConfig:
    """Return the settings the middleware loaded for this request."""
    return request.state.config


def get_card_options(config: CardsConfig = Depends(get_request_config)) -> CardOptions:
    """Return the active allow-lists (defaults, or ``options_file``)."""
    return load_card_options(config.options_file)


def get_image_provider(config: CardsConfig = Depends(get_request_config)) -> ImageProvider:
    """Return the image provider for this request."""
    return get_provider(config)


def get_http_transport() -> httpx.AsyncBaseTransport | None:
    """Transport used to download provider-hosted images.  ``None`` = default."""
    return None


# ---------------------------------------------------------------------------
# Error envelope handlers.
# ---------------------------------------------------------------------------


@app.exception_handler(CardGenerationError)
async def card_generation_error_handler(request: Request, exc: CardGenerationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (404, 405) in the ``{"error": ...}`` envelope."""
    if exc.status_code == 405:
        message = "Method not allowed"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)


# ---------------------------------------------------------------------------
# Request body helper.
# ---------------------------------------------------------------------------


async def _read_json_body(request: Request) -> Any:
    """Decode the request body as JSON.

    An empty or undecodable body yields ``None``, which validation treats as
    a request with every field missing.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.info("Request body is not valid JSON (%d bytes)", len(raw))
        return None


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    405: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@app.get("/generate", response_model=HealthResponse)
@app.get("/api/generate-card", response_model=HealthResponse, include_in_schema=False)
async def health() -> HealthResponse:
    """Static liveness check.  Never contacts the image provider."""
    return HealthResponse()


@app.post("/generate", responses=_ERROR_RESPONSES)
@app.post("/api/generate-card", responses=_ERROR_RESPONSES, include_in_schema=False)
async def generate_card(
    request: Request,
    config: CardsConfig = Depends(get_request_config),
    options: CardOptions = Depends(get_card_options),
    provider: ImageProvider = Depends(get_image_provider),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> JSONResponse:
    """Generate a greeting card front image.

    This endpoint:

    1. Checks that the provider credential is configured.
    2. Validates the four dropdown fields against the allow-lists.
    3. Builds the prompt and calls the image provider once.
    4. Normalises the result to ``{"imageDataUrl"}`` or ``{"imageUrl"}``.

    Returns:
        JSON response with exactly one image representation.

    Raises:
        CardGenerationError: 500 ``CONFIG_MISSING``, 400
            ``VALIDATION_FAILED``, or 500 for any ``PROVIDER_*`` failure.
    """
    if not config.api_key:
        raise CardGenerationError(ErrorKind.CONFIG_MISSING)

    card = parse_card_request(await _read_json_body(request), options)

    width, height = config.image_dimensions
    prompt = build_card_prompt(card, orientation=orientation_for_size(width, height))

    logger.info(
        "card.generate request cardType=%s theme=%s vibe=%s size=%s provider=%s",
        card.card_type,
        card.theme,
        card.vibe,
        config.image_size,
        provider.provider_name,
    )

    async def _generate_and_normalize() -> GenerationResult:
        image = await provider.generate(prompt, config.image_size)
        return await normalize_image(
            image,
            policy=config.remote_image_policy,
            timeout=config.provider_timeout_seconds,
            transport=transport,
        )

    try:
        # Caps SDK retries plus the optional download at one overall deadline.
        result = await asyncio.wait_for(_generate_and_normalize(), config.generation_deadline_seconds)
    except asyncio.TimeoutError as exc:
        logger.error("card.generate exceeded deadline=%.1fs", config.generation_deadline_seconds)
        raise CardGenerationError(
            ErrorKind.PROVIDER_TIMEOUT,
            f"No image within {config.generation_deadline_seconds:g}s",
        ) from exc
    except CardGenerationError as exc:
        logger.error("card.generate failed kind=%s error=%s", exc.kind.value, exc)
        raise

    payload = result.to_response()
    logger.info(
        "card.generate success kind=%s payloadSize=%d",
        result.kind,
        len(next(iter(payload.values()))),
    )
    return JSONResponse(payload)


@app.get("/api/options")
async def get_options(options: CardOptions = Depends(get_card_options)) -> dict:
    """Return the dropdown allow-lists keyed by request field name.

    Returns:
        Dictionary with ``cardType``, ``whoFor``, ``theme`` and ``vibe``
        lists, in display order.
    """
    return options.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~cardsforcare.core.config.config`
    (``CARDS_SERVER_HOST``, ``CARDS_SERVER_PORT``, ``CARDS_LOG_LEVEL``).
    Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``cardsforcare`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not config.api_key:
        logger.warning("OPENAI_API_KEY is not set; generation requests will fail until it is.")

    uvicorn.run(
        "cardsforcare.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
