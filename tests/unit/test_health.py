"""Unit tests for GET /health readiness gating."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from verigate.main import create_app


def _transport(ready: bool, config) -> ASGITransport:
    application = create_app(config=config)
    application.state.ready = ready
    return ASGITransport(app=application)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_health_503_before_ready(config) -> None:
    async with AsyncClient(transport=_transport(False, config), base_url="http://test") as client:
        response = await client.get("/health")
    assert response.status_code == 503
    assert response.json() == {"error": "starting"}


@pytest.mark.asyncio
async def test_health_200_when_ready(config) -> None:
    async with AsyncClient(transport=_transport(True, config), base_url="http://test") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_health_does_not_call_vendor(config, fake_anura) -> None:
    async with AsyncClient(transport=_transport(True, config), base_url="http://test") as client:
        await client.get("/health")
    assert fake_anura.requests == []
