"""Request-scoped deployment: AWS Lambda proxy handler.

Serves the same surface as the standalone app from a single function behind
API Gateway (HTTP API v2 or REST v1 proxy events):

  OPTIONS *      → 204 + CORS headers
  GET  /health   → 200 {"status": "healthy"}
  GET  /go       → verification page
  POST /verify   → {"url": ...}
  anything else  → 404 "Not found"

Configuration is read from the function's environment on every invocation
(``Config.from_env``). Missing vendor credentials make /go and /verify answer
500 {"error": "Service misconfigured"} instead of crashing the runtime.

The handler drives the shared async core with ``asyncio.run`` and a
per-invocation httpx client; nothing survives between invocations.
"""

from __future__ import annotations

import asyncio
import base64
import json
import os
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl

from verigate.audit import AuditHook, LoggingAuditHook
from verigate.config import Config
from verigate.constants import CORS_HEADERS
from verigate.errors import ConfigurationError, GatewayError, INTERNAL_ERROR_MESSAGE
from verigate.gateway import render_entry_page, resolve_verification
from verigate.models.verification import RequestContext
from verigate.utils.logger import clear_request_id, configure_logging, get_logger, set_request_id
from verigate.utils.ulid import generate_ulid
from verigate.vendor import AnuraClient, create_http_client

configure_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    json_output=os.getenv("JSON_LOGS", "true").lower() == "true",
)
logger = get_logger(__name__)


# ─── Event parsing ────────────────────────────────────────────────────────────


def _method(event: Mapping[str, Any]) -> str:
    http = (event.get("requestContext") or {}).get("http") or {}
    return (http.get("method") or event.get("httpMethod") or "GET").upper()


def _path(event: Mapping[str, Any]) -> str:
    return event.get("rawPath") or event.get("path") or "/"


def _query(event: Mapping[str, Any]) -> dict[str, str]:
    """Query parameters; the first occurrence of a repeated key wins."""
    raw = event.get("rawQueryString")
    if raw:
        params: dict[str, str] = {}
        for key, value in parse_qsl(raw, keep_blank_values=True):
            params.setdefault(key, value)
        return params
    return dict(event.get("queryStringParameters") or {})


def _body(event: Mapping[str, Any]) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


# ─── Response shaping ─────────────────────────────────────────────────────────


def _response(
    status_code: int,
    body: str = "",
    content_type: Optional[str] = None,
    extra_headers: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    headers = dict(CORS_HEADERS)
    if content_type:
        headers["Content-Type"] = content_type
    if extra_headers:
        headers.update(extra_headers)
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": body,
        "isBase64Encoded": False,
    }


def _json_response(status_code: int, payload: Any) -> dict[str, Any]:
    return _response(status_code, json.dumps(payload), "application/json")


def _error_response(exc: GatewayError) -> dict[str, Any]:
    payload = exc.payload()
    if isinstance(payload, str):
        return _response(exc.status_code, payload, "text/plain; charset=utf-8")
    return _json_response(exc.status_code, payload)


# ─── Dispatch ─────────────────────────────────────────────────────────────────


def _load_config(environ: Mapping[str, str]) -> Config:
    try:
        config = Config.from_env(environ)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
    missing = config.missing_settings()
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
    return config


async def handle_event(
    event: Mapping[str, Any],
    environ: Mapping[str, str],
    audit_hook: Optional[AuditHook] = None,
) -> dict[str, Any]:
    """Route one proxy event and return the proxy response dict."""
    method = _method(event)
    path = _path(event)

    if method == "OPTIONS":
        return _response(204)
    if path == "/health" and method == "GET":
        return _json_response(200, {"status": "healthy"})
    if not ((path == "/go" and method == "GET") or (path == "/verify" and method == "POST")):
        return _response(404, "Not found", "text/plain; charset=utf-8")

    try:
        config = _load_config(environ)
        context = RequestContext.from_query(_query(event))

        if path == "/go":
            html = render_entry_page(config, context)
            return _response(
                200, html, "text/html; charset=utf-8", {"Cache-Control": "no-store"}
            )

        async with create_http_client(config.vendor.timeout_s) as http_client:
            destination = await resolve_verification(
                config,
                AnuraClient(http_client, config.vendor),
                context,
                _body(event),
                audit_hook or LoggingAuditHook(),
            )
        return _json_response(200, {"url": destination})

    except GatewayError as exc:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Request failed",
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            detail=exc.detail,
            path=path,
        )
        return _error_response(exc)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=path,
        )
        return _json_response(500, {"error": INTERNAL_ERROR_MESSAGE})


def handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Lambda entry point (``verigate.edge.handler``)."""
    request_id = getattr(context, "aws_request_id", None) or generate_ulid()
    set_request_id(request_id)
    try:
        logger.info("Request received", method=_method(event), path=_path(event))
        return asyncio.run(handle_event(event, os.environ))
    finally:
        clear_request_id()
