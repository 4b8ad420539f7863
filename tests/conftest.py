"""Root test configuration for Verigate.

Strips vendor/server environment variables for every test so a developer's
shell (or a stray .env) can never point the suite at the real Anura API.
Provides a ready Config and an in-process fake of the Anura result endpoint.
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from verigate.config import Config, DefaultsConfig, VendorConfig

_ENV_VARS = (
    "ANURA_INSTANCE_ID",
    "ANURA_API_KEY",
    "ANURA_TIMEOUT_S",
    "DEFAULT_REDIRECT_URL",
    "DEFAULT_DENIED_URL",
    "HOST",
    "PORT",
    "VERIGATE_CONFIG",
)

TEST_INSTANCE_ID = "inst-424242"
TEST_API_KEY = "test-api-key-not-real"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> Config:
    """Config with credentials and both default destinations set."""
    return Config(
        vendor=VendorConfig(instance_id=TEST_INSTANCE_ID, api_key=TEST_API_KEY, timeout_s=2.0),
        defaults=DefaultsConfig(
            redirect_url="https://default-allow.example",
            denied_url="https://default-deny.example",
        ),
    )


class FakeAnura:
    """In-process stand-in for script.anura.io/result.json.

    Records every request and answers with a configurable status and body.
    Set ``error`` to an httpx exception instance to simulate transport failure.
    """

    def __init__(
        self,
        *,
        status_code: int = 200,
        payload: Any = None,
        content: bytes | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.payload = {"result": "good"} if payload is None else payload
        self.content = content
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self, timeout_s: float = 2.0) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler), timeout=timeout_s
        )


@pytest.fixture
def fake_anura() -> FakeAnura:
    return FakeAnura()


class RecordingAuditHook:
    """Audit hook that keeps events in memory."""

    def __init__(self) -> None:
        self.events: list[Any] = []

    def record(self, event: Any) -> None:
        self.events.append(event)


@pytest.fixture
def audit_hook() -> RecordingAuditHook:
    return RecordingAuditHook()
