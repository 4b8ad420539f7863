"""Transport-neutral core of the gateway.

Both adapters (the FastAPI app in ``verigate.main`` and the request-scoped
handler in ``verigate.edge``) call these two functions and translate
``GatewayError`` into their own response objects:

    render_entry_page()    GET /go
    resolve_verification() POST /verify
"""

from __future__ import annotations

import json
from typing import Any, Optional

from verigate.audit import AuditHook, emit
from verigate.config import Config
from verigate.errors import InvalidUrlArgument, MalformedRequestBody, MissingToken
from verigate.models.verification import RequestContext, VerificationEvent
from verigate.page import render_verification_page
from verigate.policy import choose_destination
from verigate.urls import is_valid_url
from verigate.utils.logger import get_logger, request_id_var
from verigate.vendor import AnuraClient

logger = get_logger(__name__)


def render_entry_page(config: Config, context: RequestContext) -> str:
    """Validate the destinations and render the verification page.

    Raises:
        InvalidUrlArgument: if either URL is not absolute. Nothing is rendered
                            and the vendor is never contacted.
    """
    if not is_valid_url(context.redirect_url) or not is_valid_url(context.denied_url):
        raise InvalidUrlArgument(
            f"redirectUrl={context.redirect_url!r} deniedUrl={context.denied_url!r}"
        )
    return render_verification_page(
        config.vendor.instance_id,
        source=context.source,
        campaign=context.campaign,
    )


def parse_token(body: bytes) -> str:
    """Extract ``responseId`` from a ``/verify`` JSON body.

    Raises:
        MalformedRequestBody: body is not a JSON object.
        MissingToken:         empty body, or ``responseId`` absent, empty or
                              not a string.
    """
    if not body.strip():
        raise MissingToken()
    try:
        payload: Any = json.loads(body)
    except ValueError as exc:
        raise MalformedRequestBody(f"Invalid JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedRequestBody(f"JSON body is a {type(payload).__name__}, not an object")

    token = payload.get("responseId")
    if not isinstance(token, str) or not token:
        raise MissingToken()
    return token


async def resolve_verification(
    config: Config,
    client: AnuraClient,
    context: RequestContext,
    body: bytes,
    audit_hook: AuditHook,
) -> Optional[str]:
    """Run one verification: token → vendor verdict → destination URL.

    Raises:
        MalformedRequestBody, MissingToken: before the vendor is called.
        UpstreamError: the vendor call failed.
    """
    token = parse_token(body)
    vendor_result = await client.fetch_result(token)

    destination = choose_destination(
        context.security,
        vendor_result.result,
        context.redirect_url,
        context.denied_url,
        config.defaults,
    )
    if destination is None:
        logger.warning(
            "No destination resolved: request URL and configured default both empty",
            security=context.security,
            verdict=vendor_result.result,
        )

    emit(
        audit_hook,
        VerificationEvent(
            security=context.security,
            verdict=vendor_result.result,
            destination=destination,
            source=context.source,
            campaign=context.campaign,
            request_id=request_id_var.get(),
        ),
    )
    return destination
