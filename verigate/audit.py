"""Pluggable audit hook for resolved verifications.

Each ``/verify`` that reaches a decision emits one ``VerificationEvent``. The
default hook writes it as a single structured log line; deployments that want
the events elsewhere pass their own ``AuditHook`` to ``create_app()`` or the
request-scoped handler.

Hooks run inline and must be quick. A failing hook is logged and otherwise
ignored; it never changes the visitor's response.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from verigate.models.verification import VerificationEvent
from verigate.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class AuditHook(Protocol):
    """Receives one event per resolved verification."""

    def record(self, event: VerificationEvent) -> None:
        ...


class LoggingAuditHook:
    """Default hook: one ``info`` line per event."""

    def __init__(self, event_name: str = "Verification resolved") -> None:
        self._event_name = event_name
        self._logger = get_logger("verigate.audit")

    def record(self, event: VerificationEvent) -> None:
        self._logger.info(self._event_name, **event.to_dict())


class NullAuditHook:
    """Discards events. Used in tests and when auditing is turned off."""

    def record(self, event: VerificationEvent) -> None:
        return None


def emit(hook: AuditHook, event: VerificationEvent) -> None:
    """Deliver *event* to *hook*, logging (not raising) on failure."""
    try:
        hook.record(event)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Audit hook failed (non-fatal)",
            hook=type(hook).__name__,
            error=str(exc),
            error_type=type(exc).__name__,
        )
