"""Gateway routes for the standalone FastAPI app.

  GET  /go      → verification page (400 text/plain on invalid URLs)
  POST /verify  → {"url": ...} (400/500 JSON envelopes on failure)

Handlers stay thin. Shared state comes from ``app.state`` through the
dependencies below, the decision logic lives in ``verigate.gateway``, and
``GatewayError`` is turned into a response by the handler registered in
``create_app()``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse

from verigate.audit import AuditHook
from verigate.config import Config
from verigate.gateway import render_entry_page, resolve_verification
from verigate.models.responses import build_destination_response, build_page_response
from verigate.models.verification import RequestContext
from verigate.vendor import AnuraClient

router = APIRouter(tags=["gateway"])


# ─── Dependencies ─────────────────────────────────────────────────────────────


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_vendor_client(request: Request) -> AnuraClient:
    return request.app.state.vendor_client


def get_audit_hook(request: Request) -> AuditHook:
    return request.app.state.audit_hook


def get_request_context(request: Request) -> RequestContext:
    return RequestContext.from_query(request.query_params)


# ─── Routes ───────────────────────────────────────────────────────────────────


@router.get("/go", response_class=HTMLResponse)
async def go(
    config: Config = Depends(get_config),
    context: RequestContext = Depends(get_request_context),
) -> HTMLResponse:
    """Serve the verification page for a visitor."""
    return build_page_response(render_entry_page(config, context))


@router.post("/verify")
async def verify(
    request: Request,
    config: Config = Depends(get_config),
    client: AnuraClient = Depends(get_vendor_client),
    audit_hook: AuditHook = Depends(get_audit_hook),
    context: RequestContext = Depends(get_request_context),
) -> JSONResponse:
    """Exchange the vendor token for a destination URL."""
    body = await request.body()
    destination = await resolve_verification(config, client, context, body, audit_hook)
    return build_destination_response(destination)
