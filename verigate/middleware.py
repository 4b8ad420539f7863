"""Starlette middlewares for the standalone gateway.

  PermissiveCorsMiddleware  answers every OPTIONS with 204 and stamps the
                            CORS headers on every response
  RequestLoggingMiddleware  binds a ULID request id to the log context, logs
                            method + path + status, echoes X-Request-ID
  BodySizeLimitMiddleware   rejects request bodies over MAX_REQUEST_BODY_BYTES
                            with 413 before any handler reads them

Registration order in ``create_app()``: the LAST-added middleware is
OUTERMOST. CORS is added last so preflights never reach the body check or a
route.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from verigate.constants import CORS_HEADERS, MAX_REQUEST_BODY_BYTES
from verigate.utils.logger import clear_request_id, get_logger, set_request_id
from verigate.utils.ulid import generate_ulid

logger = get_logger(__name__)

_PAYLOAD_TOO_LARGE_BODY: dict = {"error": "Request body too large"}

_INVALID_CONTENT_LENGTH_BODY: dict = {"error": "Invalid Content-Length header"}


class PermissiveCorsMiddleware(BaseHTTPMiddleware):
    """Allow any origin to call the gateway.

    Unlike Starlette's CORSMiddleware this does not require an ``Origin`` /
    ``Access-Control-Request-Method`` pair: any OPTIONS request, on any path,
    is a 204 with the CORS headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=dict(CORS_HEADERS))
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request, correlated by a ULID request id."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        request_id = generate_ulid()
        set_request_id(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_request_id()
        logger.info(
            "Request handled",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Hard cap on request body size.

    Two-phase check:
      1. Content-Length declared → reject immediately if over the cap.
      2. No Content-Length (chunked) → read with a rolling cap and cache the
         bytes on the request so the handler can still ``await request.body()``.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        content_length_header = request.headers.get("content-length")

        if content_length_header is not None:
            try:
                declared_size = int(content_length_header)
            except ValueError:
                logger.warning(
                    "Invalid Content-Length header",
                    value=content_length_header,
                    path=request.url.path,
                )
                return JSONResponse(status_code=400, content=_INVALID_CONTENT_LENGTH_BODY)

            if declared_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (Content-Length)",
                    declared_size=declared_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)
            return await call_next(request)

        if request.method not in ("POST", "PUT", "PATCH"):
            return await call_next(request)

        body_chunks: list[bytes] = []
        total_size = 0
        async for chunk in request.stream():
            total_size += len(chunk)
            if total_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (chunked)",
                    accumulated_size=total_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)
            body_chunks.append(chunk)

        # Request.body() returns the cached _body without touching the stream.
        request._body = b"".join(body_chunks)  # type: ignore[attr-defined]
        return await call_next(request)
