"""Origin allow-list, preflight handling and the outermost error boundary.

Starlette's ``CORSMiddleware`` rejects preflights from unknown origins with a
400 and answers allowed ones with a 200.  The front-end contract here is
different: the server never hard-fails a mismatched origin, it only withholds
``Access-Control-Allow-Origin`` and lets the browser enforce the block.
Preflights always get an empty 204.

The middleware is also where per-request configuration is resolved.  The
loaded :class:`~cardsforcare.core.config.CardsConfig` is stored on
``request.state.config`` and reused by the route dependencies, so each
request reads its settings exactly once.

Any exception that escapes routing, dependencies or configuration loading is
rendered here as the ``{"error": "Server error"}`` envelope, so every
response carries the CORS headers and nothing propagates to the ASGI server.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from cardsforcare.core.config import CardsConfig
from cardsforcare.core.errors import truncate_details

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET,POST,OPTIONS"
ALLOWED_HEADERS = "Content-Type"


def apply_cors_headers(response: Response, origin: str | None, allowed_origins: Iterable[str]) -> None:
    """Set the CORS headers every response carries.

    The allow-origin header is only present when *origin* is allow-listed.
    """
    if origin and origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Vary"] = "Origin"
    response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
    response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS


def server_error_response(exc: Exception) -> JSONResponse:
    """Render an unexpected exception as the generic 500 envelope."""
    return JSONResponse(
        status_code=500,
        content={"error": "Server error", "details": truncate_details(str(exc))},
    )


def make_cors_middleware(
    load_config: Callable[[Request], CardsConfig],
) -> Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]:
    """Build the HTTP middleware enforcing the origin allow-list.

    Args:
        load_config: Called once per request to obtain the settings.  The
            result is stored on ``request.state.config``.

    Returns:
        A coroutine suitable for ``app.middleware("http")``.
    """

    async def cors_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        origin = request.headers.get("origin")
        allowed_origins: list[str] = []

        try:
            config = load_config(request)
            request.state.config = config
            allowed_origins = list(config.allowed_origins)

            if request.method == "OPTIONS":
                response = Response(status_code=204)
            else:
                response = await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = server_error_response(exc)

        if origin and origin not in allowed_origins:
            logger.debug("Withholding Access-Control-Allow-Origin for origin=%s", origin)
        apply_cors_headers(response, origin, allowed_origins)
        return response

    return cors_middleware
