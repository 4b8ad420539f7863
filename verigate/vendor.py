"""Anura result API client.

One call per ``/verify`` request:

    GET https://script.anura.io/result.json?instance=<id>&id=<token>
    Authorization: Bearer <api key>
    Accept: application/json

No retries. Every failure is folded into ``UpstreamError`` so the caller sees a
single failure mode (HTTP 500 to the visitor):

  - httpx transport errors and timeouts
  - non-2xx status codes
  - a body that is not a JSON object
"""

from __future__ import annotations

from typing import Any

import httpx

from verigate.config import VendorConfig
from verigate.constants import VENDOR_RESULT_URL
from verigate.errors import UpstreamError
from verigate.models.verification import VendorResult
from verigate.utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)

# Connection pool for the standalone server. The vendor is the only upstream,
# so a modest pool covers it.
POOL_MAX_CONNECTIONS: int = 50
POOL_MAX_KEEPALIVE: int = 20
POOL_KEEPALIVE_EXPIRY: float = 30.0  # seconds


def create_http_client(timeout_s: float) -> httpx.AsyncClient:
    """Create the httpx.AsyncClient used for vendor calls.

    The standalone app creates one at lifespan startup and stores it in
    ``app.state.http_client``; the request-scoped handler creates one per
    invocation.
    """
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=POOL_MAX_CONNECTIONS,
            max_keepalive_connections=POOL_MAX_KEEPALIVE,
            keepalive_expiry=POOL_KEEPALIVE_EXPIRY,
        ),
        timeout=httpx.Timeout(timeout_s),
        follow_redirects=False,
    )


class AnuraClient:
    """Thin wrapper binding vendor settings to an httpx client."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        vendor: VendorConfig,
        result_url: str = VENDOR_RESULT_URL,
    ) -> None:
        self._http = http_client
        self._vendor = vendor
        self._result_url = result_url

    async def fetch_result(self, token: str) -> VendorResult:
        """Exchange a visitor token for the vendor's verdict.

        Raises:
            UpstreamError: on any transport, status or decoding failure.
        """
        try:
            with PerformanceLogger("vendor result lookup", logger=logger):
                response = await self._http.get(
                    self._result_url,
                    params={"instance": self._vendor.instance_id, "id": token},
                    headers={
                        "Authorization": f"Bearer {self._vendor.api_key}",
                        "Accept": "application/json",
                    },
                    timeout=self._vendor.timeout_s,
                )
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Anura API timeout: {type(exc).__name__}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Anura API unreachable: {type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(f"Anura API error: {response.status_code}")

        try:
            data: Any = response.json()
        except ValueError as exc:
            raise UpstreamError("Anura API returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise UpstreamError("Anura API returned a non-object body")

        result = data.get("result")
        verdict = result if isinstance(result, str) else ""
        logger.debug("Anura result received", verdict=verdict)
        return VendorResult(result=verdict)
