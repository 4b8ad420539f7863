"""Absolute-URL validation for visitor-supplied destinations.

Follows what a browser's ``new URL(value)`` accepts:

  - leading/trailing C0 controls and spaces are ignored, tabs and newlines
    anywhere are dropped;
  - the scheme is a letter followed by letters, digits, ``+``, ``-`` or ``.``;
  - special schemes (http, https, ws, wss, ftp) need a non-empty host. Any
    run of ``/`` or ``\\`` after the colon is skipped, so ``http:host`` and
    ``http:///host`` both parse. A port, if present, is 0-65535;
  - ``file:`` and every other scheme accept whatever follows the colon,
    including nothing (``mailto:``).

Relative references, bare hostnames and empty strings are rejected.
"""

from __future__ import annotations

import re
from typing import Optional

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

_AUTHORITY_END_RE = re.compile(r"[/\\?#]")

_PORT_RE = re.compile(r"^[0-9]*$")

_IPV6_RE = re.compile(r"^[0-9A-Fa-f:.]+$")

# Schemes that must carry a host to be usable.
SPECIAL_SCHEMES: frozenset[str] = frozenset({"http", "https", "ws", "wss", "ftp"})

_FORBIDDEN_HOST_CHARS: frozenset[str] = frozenset("\x00 #/:<>?@[\\]^|")

_EDGE_CHARS = "".join(chr(code) for code in range(0x21))

_DROPPED_CHARS = {ord("\t"): None, ord("\n"): None, ord("\r"): None}


def is_valid_url(value: Optional[str]) -> bool:
    """Return True if *value* parses as an absolute URL."""
    if not isinstance(value, str):
        return False
    candidate = value.strip(_EDGE_CHARS).translate(_DROPPED_CHARS)

    scheme, colon, remainder = candidate.partition(":")
    if not colon or not _SCHEME_RE.match(scheme):
        return False
    if scheme.lower() in SPECIAL_SCHEMES:
        return _has_valid_host(remainder)
    return True


def _has_valid_host(remainder: str) -> bool:
    authority = _AUTHORITY_END_RE.split(remainder.lstrip("/\\"), maxsplit=1)[0]
    host_port = authority.rpartition("@")[2]

    if host_port.startswith("["):
        address, bracket, rest = host_port[1:].partition("]")
        if not bracket or not _IPV6_RE.match(address):
            return False
        if rest and not rest.startswith(":"):
            return False
        port = rest[1:]
    else:
        host, _, port = host_port.partition(":")
        if not host or any(ch in _FORBIDDEN_HOST_CHARS for ch in host):
            return False

    if not _PORT_RE.match(port):
        return False
    return not port or int(port) <= 65535
