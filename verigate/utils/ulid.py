"""ULID generation for Verigate request ids.

Each inbound request gets one ULID. It is bound to the structlog context,
echoed back in the ``X-Request-ID`` response header and attached to the
verification audit line, so a visitor's ``/go`` and ``/verify`` hops can be
followed through the logs.

Uses the ``python-ulid`` library; ULIDs are 26 Crockford Base32 characters and
sort by creation time.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Example::

        request_id = generate_ulid()
        # "01KJ0JRVHYA7KX32VPN5ZSCTMV"
    """
    return str(ULID())
