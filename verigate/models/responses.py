"""HTTP response builders for the FastAPI adapter.

Every response carries the permissive CORS headers. The exception handlers
registered in ``create_app()`` run outside the middleware stack for unhandled
errors, so the builders set the headers themselves instead of relying on
``PermissiveCorsMiddleware`` alone.

  build_page_response()       200 text/html, not cacheable
  build_destination_response() 200 {"url": ...}
  build_error_response()      GatewayError → 400/500, JSON or plain text
  build_not_found_response()  404 "Not found"
"""

from __future__ import annotations

from typing import Optional

from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from verigate.constants import CORS_HEADERS
from verigate.errors import INTERNAL_ERROR_MESSAGE, GatewayError


def build_page_response(html: str) -> HTMLResponse:
    """Verification page; each render has its own cache buster, so no caching."""
    return HTMLResponse(
        content=html,
        headers={**CORS_HEADERS, "Cache-Control": "no-store"},
    )


def build_destination_response(url: Optional[str]) -> JSONResponse:
    return JSONResponse(content={"url": url}, headers=dict(CORS_HEADERS))


def build_error_response(exc: GatewayError) -> Response:
    """Render a GatewayError with its status and public message only.

    ``exc.detail`` is never included; it may contain request data.
    """
    payload = exc.payload()
    if isinstance(payload, str):
        return PlainTextResponse(
            content=payload, status_code=exc.status_code, headers=dict(CORS_HEADERS)
        )
    return JSONResponse(
        content=payload, status_code=exc.status_code, headers=dict(CORS_HEADERS)
    )


def build_internal_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": INTERNAL_ERROR_MESSAGE},
        headers=dict(CORS_HEADERS),
    )


def build_not_found_response() -> PlainTextResponse:
    return PlainTextResponse("Not found", status_code=404, headers=dict(CORS_HEADERS))
