"""Security policy mapping: (policy, vendor verdict) → destination URL.

This is the only decision the gateway makes. It is a pure function of its
arguments; both transport adapters call it through ``verigate.gateway``.

    strict   verdict == "good"  → redirect, else denied
    medium   verdict != "bad"   → redirect, else denied
    none     always             → redirect
    other    always             → denied

An empty per-request URL falls back to the configured default for the same
side. ``none`` therefore lands on the default *redirect* URL, never on a
denied URL. When neither value is set the result is ``None``.
"""

from __future__ import annotations

from typing import Optional, Union

from verigate.config import DefaultsConfig
from verigate.models.verification import VERDICT_BAD, VERDICT_GOOD, SecurityPolicy


def passes(policy: Optional[SecurityPolicy], verdict: str) -> bool:
    """Return True if *verdict* is acceptable under *policy*."""
    if policy is SecurityPolicy.STRICT:
        return verdict == VERDICT_GOOD
    if policy is SecurityPolicy.MEDIUM:
        return verdict != VERDICT_BAD
    if policy is SecurityPolicy.NONE:
        return True
    return False


def choose_destination(
    security: Union[SecurityPolicy, str, None],
    verdict: str,
    redirect_url: Optional[str],
    denied_url: Optional[str],
    defaults: DefaultsConfig,
) -> Optional[str]:
    """Pick the URL the browser should navigate to.

    Args:
        security:     Policy, or its raw query-string value (unknown → deny).
        verdict:      Vendor ``result`` value.
        redirect_url: Per-request allow destination (may be empty/None).
        denied_url:   Per-request deny destination (may be empty/None).
        defaults:     Server-configured fallbacks.
    """
    policy = security if isinstance(security, SecurityPolicy) else SecurityPolicy.parse(security)
    if passes(policy, verdict):
        return redirect_url or defaults.redirect_url
    return denied_url or defaults.denied_url
