"""Data contracts for one visitor verification.

Nothing here is persisted. A ``RequestContext`` lives for one HTTP request;
``VendorResult`` and ``VerificationEvent`` are produced once per ``/verify``
call and then dropped.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional


class SecurityPolicy(str, Enum):
    """How strictly a non-"good" vendor verdict is treated."""

    STRICT = "strict"  # only "good" passes
    MEDIUM = "medium"  # everything but "bad" passes
    NONE = "none"      # everything passes

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SecurityPolicy"]:
        """Return the policy named by *value*, or None if absent/unknown.

        Matching is exact: ``"Strict"`` is not ``strict``.
        """
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# Verdict values the policy mapping distinguishes; anything else is "neither".
VERDICT_GOOD = "good"
VERDICT_BAD = "bad"


@dataclass(frozen=True)
class RequestContext:
    """Query-string arguments shared by ``/go`` and ``/verify``.

    Fields are kept as the visitor sent them (``None`` when absent); defaults
    are applied later by the policy mapping, never here.
    """

    redirect_url: Optional[str] = None
    denied_url: Optional[str] = None
    security: Optional[str] = None
    source: str = ""
    campaign: str = ""

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "RequestContext":
        return cls(
            redirect_url=query.get("redirectUrl"),
            denied_url=query.get("deniedUrl"),
            security=query.get("security"),
            source=query.get("source") or "",
            campaign=query.get("campaign") or "",
        )


@dataclass(frozen=True)
class VendorResult:
    """Decoded answer from the vendor result endpoint.

    ``result`` is "good", "bad", or anything else; "" when the vendor omitted
    it or sent a non-string value.
    """

    result: str


@dataclass(frozen=True)
class VerificationEvent:
    """Audit record for one resolved verification.

    ``source`` and ``campaign`` are visitor-supplied and may identify a traffic
    partner; hooks that ship events off-box decide what to keep.
    """

    security: Optional[str]
    verdict: str
    destination: Optional[str]
    source: str
    campaign: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data
