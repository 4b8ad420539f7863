"""Gateway error taxonomy.

Every failure on the request path is a ``GatewayError`` subclass carrying the
HTTP status and the public message the visitor sees. All of them are terminal
for the current request; none are retried.

    InvalidUrlArgument    400  /go, plain text
    MissingToken          400  /verify, JSON
    MalformedRequestBody  500  /verify, JSON (body shown as a generic error)
    UpstreamError         500  /verify, JSON

The public message never echoes request data or vendor output; ``detail`` is
for server-side logs only.
"""

from __future__ import annotations

from typing import Optional, Union

INTERNAL_ERROR_MESSAGE = "Internal server error"


class GatewayError(Exception):
    """Base class for request-terminating gateway failures."""

    status_code: int = 500
    message: str = INTERNAL_ERROR_MESSAGE
    # "json" → {"error": message}; "text" → message as text/plain
    media: str = "json"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail

    def payload(self) -> Union[dict[str, str], str]:
        """Public response body for this error."""
        if self.media == "text":
            return self.message
        return {"error": self.message}


class InvalidUrlArgument(GatewayError):
    """redirectUrl or deniedUrl on /go is not an absolute URL."""

    status_code = 400
    message = "Invalid URLs provided"
    media = "text"


class MissingToken(GatewayError):
    """The /verify body has no usable responseId."""

    status_code = 400
    message = "Missing response ID"


class MalformedRequestBody(GatewayError):
    """The /verify body is not a JSON object."""


class UpstreamError(GatewayError):
    """The vendor result API was unreachable, timed out, or answered badly."""


class ConfigurationError(GatewayError):
    """Vendor credentials are missing in a request-scoped deployment."""

    message = "Service misconfigured"
