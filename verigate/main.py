"""Verigate FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan — startup/shutdown sequence
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()          → app.state.config (refuses to start without
                              vendor credentials)
  2. create_http_client()   → app.state.http_client (one shared pool)
  3. AnuraClient            → app.state.vendor_client
  4. audit hook             → app.state.audit_hook (LoggingAuditHook unless
                              one was injected)
  5. app.state.ready = True

Shutdown (reverse):
  app.state.ready = False → close shared HTTP client

Run with:
  verigate                              # console script, see verigate/run.py
  uvicorn verigate.main:app --port 3000
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from verigate.audit import AuditHook, LoggingAuditHook
from verigate.config import Config, load_config
from verigate.errors import GatewayError
from verigate.health import router as health_router
from verigate.middleware import (
    BodySizeLimitMiddleware,
    PermissiveCorsMiddleware,
    RequestLoggingMiddleware,
)
from verigate.models.responses import (
    build_error_response,
    build_internal_error_response,
    build_not_found_response,
)
from verigate.routes import router as gateway_router
from verigate.utils.logger import configure_logging, get_logger
from verigate.vendor import AnuraClient, create_http_client

# ─── Logging Setup ────────────────────────────────────────────────────────────
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)


# ─── Dependencies ─────────────────────────────────────────────────────────────


async def require_ready(request: Request) -> None:
    """FastAPI dependency: raises HTTP 503 if app.state.ready is not True."""
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(status_code=503, detail="Service starting")


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build shared state, then tear it down."""
    logger.info("Verigate starting up...")

    # load_config() raises SystemExit on a bad file or missing credentials,
    # so the process exits before ready=True is ever set.
    config: Config = app.state.config or load_config()
    app.state.config = config

    http_client: httpx.AsyncClient = create_http_client(config.vendor.timeout_s)
    app.state.http_client = http_client
    app.state.vendor_client = AnuraClient(http_client, config.vendor)
    logger.info("Vendor HTTP client created", timeout_s=config.vendor.timeout_s)

    if app.state.audit_hook is None:
        app.state.audit_hook = LoggingAuditHook()

    app.state.ready = True
    logger.info(
        "Verigate ready",
        instance_id_configured=bool(config.vendor.instance_id),
        api_key_configured=bool(config.vendor.api_key),
    )

    yield

    logger.info("Verigate shutting down...")
    app.state.ready = False

    try:
        await http_client.aclose()
        logger.info("Vendor HTTP client closed")
    except Exception as exc:
        logger.warning("Vendor HTTP client close error (non-fatal)", error=str(exc))

    logger.info("Verigate shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app(
    config: Optional[Config] = None,
    audit_hook: Optional[AuditHook] = None,
) -> FastAPI:
    """Create and configure the Verigate FastAPI application.

    Args:
        config:     Pre-built configuration. When None, the lifespan calls
                    ``load_config()``.
        audit_hook: Receiver for verification events. When None, the lifespan
                    installs ``LoggingAuditHook``.
    """
    application = FastAPI(
        title="Verigate",
        description="Bot-check redirect gateway",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if DEBUG else None,
    )

    application.state.ready = False
    application.state.config = config
    application.state.audit_hook = audit_hook

    # LAST-added middleware is OUTERMOST: CORS → logging → body cap → routes.
    application.add_middleware(BodySizeLimitMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    application.add_middleware(PermissiveCorsMiddleware)

    application.include_router(health_router)
    application.include_router(gateway_router, dependencies=[Depends(require_ready)])

    @application.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> Response:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Request failed",
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return build_error_response(exc)

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        # Unknown paths and wrong methods are both plain 404s.
        if exc.status_code in (404, 405):
            return build_not_found_response()
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return build_internal_error_response()

    return application


# ─── Module-Level App (for uvicorn) ───────────────────────────────────────────

app = create_app()
