"""Shared constants for Verigate.

Vendor endpoints, timeouts and size caps used across modules are defined
here. No magic numbers in other modules: import from here.
"""

# ─── Vendor (Anura) endpoints ────────────────────────────────────────────────

# Client-side verification script loaded by the rendered page.
VENDOR_SCRIPT_URL: str = "https://script.anura.io/request.js"

# Synchronous result endpoint queried with the instance id and visitor token.
VENDOR_RESULT_URL: str = "https://script.anura.io/result.json"

# Name of the global JS function the vendor script invokes when it is done.
VENDOR_CALLBACK_NAME: str = "handleAnuraResponse"

# Total timeout for the vendor result call (seconds).
DEFAULT_VENDOR_TIMEOUT_S: float = 8.0

# Cache-busting number placed first in the vendor script query: 1..10^12.
CACHE_BUSTER_MAX: int = 1_000_000_000_000

# ─── Server defaults ─────────────────────────────────────────────────────────

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 3000

# ─── Request limits ──────────────────────────────────────────────────────────

# /verify bodies carry one token; anything bigger than this is rejected with 413.
MAX_REQUEST_BODY_BYTES: int = 65_536  # 64 KiB

# ─── CORS ────────────────────────────────────────────────────────────────────

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
