"""Programmatic uvicorn entry point for Verigate.

Reads host and port from the loaded config (127.0.0.1:3000 by default,
``HOST`` / ``PORT`` override) and starts uvicorn with hardened defaults:

  --limit-concurrency 200  HTTP 503 once this many connections are open
  --backlog 100            OS connection queue depth
  --timeout-keep-alive 5   short keep-alive, limits Slow Loris exposure

Usage:
    python -m verigate.run
    verigate                   # via pyproject.toml [project.scripts]
"""

from __future__ import annotations

import uvicorn

from verigate.config import load_config

UVICORN_LIMIT_CONCURRENCY: int = 200

UVICORN_BACKLOG: int = 100

UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    """Start the gateway.

    Config is loaded here for the binding and validated before uvicorn
    starts, so a missing ANURA_API_KEY fails fast with a readable message.
    The lifespan loads it again inside the worker.

    Raises:
        SystemExit: Propagated from load_config() on config errors.
    """
    config = load_config()

    uvicorn.run(
        "verigate.main:app",
        host=config.server.host,
        port=config.server.port,
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()
