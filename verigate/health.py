"""Health endpoint for Verigate.

  GET /health — 503 before the lifespan marks the app ready, then
                200 {"status": "healthy"}

Polled by container and load-balancer health probes. It does not call the
vendor: a vendor outage shows up as 500s on /verify, not as an unhealthy
gateway.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, str]:
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(status_code=503, detail="starting")
    return {"status": "healthy"}
