"""Config loading for Verigate.

Reads `.verigate/config.yaml` (or `~/.verigate/config.yaml`), then applies
environment variable overrides. A `.env` file in the working directory is
loaded first (python-dotenv) so local runs can keep credentials out of the
YAML file.

Config search order:
  1. `config_path` argument (if provided, for testing or explicit override)
  2. VERIGATE_CONFIG environment variable (if set)
  3. `.verigate/config.yaml` (working directory)
  4. `~/.verigate/config.yaml` (home directory)

Environment variable overrides (take precedence over the file):
  ANURA_INSTANCE_ID     vendor.instance_id
  ANURA_API_KEY         vendor.api_key
  ANURA_TIMEOUT_S       vendor.timeout_s
  DEFAULT_REDIRECT_URL  defaults.redirect_url
  DEFAULT_DENIED_URL    defaults.denied_url
  HOST                  server.host
  PORT                  server.port

The resulting ``Config`` is frozen. It is built once per process (or once per
request-scoped invocation) and passed explicitly to whatever needs it.
"""

from __future__ import annotations

import dataclasses
import math
import os
import sys
from dataclasses import dataclass, field
from typing import Mapping, NoReturn, Optional

import yaml
from dotenv import load_dotenv

from verigate.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_VENDOR_TIMEOUT_S
from verigate.urls import is_valid_url
from verigate.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

DEFAULT_CONFIG_PATHS = [
    ".verigate/config.yaml",
    os.path.expanduser("~/.verigate/config.yaml"),
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class VendorConfig:
    """Anura account settings.

    instance_id: Public instance id, embedded in every rendered page.
    api_key:     Bearer credential for the result endpoint. Never logged.
    timeout_s:   Total timeout for one result call.
    """

    instance_id: str = ""
    api_key: str = field(default="", repr=False)
    timeout_s: float = DEFAULT_VENDOR_TIMEOUT_S


@dataclass(frozen=True)
class DefaultsConfig:
    """Fallback destinations used when a request leaves its URL empty."""

    redirect_url: Optional[str] = None
    denied_url: Optional[str] = None


@dataclass(frozen=True)
class ServerConfig:
    """Standalone server binding."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


@dataclass(frozen=True)
class Config:
    """Root configuration object.

    All fields have defaults so a Config can be constructed in tests without
    any file or environment; ``missing_settings()`` reports whether it is
    usable against the real vendor.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    vendor: VendorConfig = field(default_factory=VendorConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    path: Optional[str] = None  # config file the values came from, if any

    @classmethod
    def defaults_only(cls) -> "Config":
        """Return a fully-default Config (no file, no environment)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Unknown keys are ignored. Type problems are reported the same way as
        a bad file: message on stderr, SystemExit(1).
        """
        vendor_raw = _section(raw, "vendor")
        defaults_raw = _section(raw, "defaults")
        server_raw = _section(raw, "server")

        vendor = VendorConfig(
            instance_id=str(vendor_raw.get("instance_id") or ""),
            api_key=str(vendor_raw.get("api_key") or ""),
            timeout_s=_parse_timeout(
                vendor_raw.get("timeout_s", DEFAULT_VENDOR_TIMEOUT_S), "vendor.timeout_s"
            ),
        )
        defaults = DefaultsConfig(
            redirect_url=defaults_raw.get("redirect_url") or None,
            denied_url=defaults_raw.get("denied_url") or None,
        )
        server = ServerConfig(
            host=server_raw.get("host", DEFAULT_HOST),
            port=_parse_port(server_raw.get("port", DEFAULT_PORT), "server.port"),
        )
        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            vendor=vendor,
            defaults=defaults,
            server=server,
            path=path,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "Config":
        """Build a Config from environment variables alone.

        Used by the request-scoped handler, which has no config file. Invalid
        numeric values raise ``ValueError`` instead of exiting.
        """
        return _with_env_overrides(cls(), environ, strict=False)

    def missing_settings(self) -> list[str]:
        """Names of required settings that are empty (env var spelling)."""
        missing: list[str] = []
        if not self.vendor.instance_id:
            missing.append("ANURA_INSTANCE_ID")
        if not self.vendor.api_key:
            missing.append("ANURA_API_KEY")
        return missing


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    dotenv: bool = True,
) -> Config:
    """Load and validate Verigate configuration.

    If no file is found, the environment alone supplies the settings (not an
    error). The vendor instance id and API key are required either way.

    Args:
        config_path: Explicit file to try first.
        environ:     Environment mapping; defaults to ``os.environ``.
        dotenv:      Load ``.env`` into ``os.environ`` first (ignored when
                     ``environ`` is given).

    Raises:
        SystemExit(1): On YAML parse error, missing or unsupported ``version``,
                       invalid port/timeout, invalid default URL, or missing
                       vendor credentials.
    """
    if environ is None:
        if dotenv:
            load_dotenv(override=False)
        environ = os.environ

    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = environ.get("VERIGATE_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    if found_path is None:
        logger.info("No config file found, using environment", searched=search_paths)
        config = Config.defaults_only()
    else:
        config = Config.from_dict(_read_config_file(found_path), path=found_path)

    config = _with_env_overrides(config, environ, strict=True)
    _validate(config)

    logger.info(
        "Config loaded",
        path=found_path,
        instance_id_configured=bool(config.vendor.instance_id),
        api_key_configured=bool(config.vendor.api_key),
        default_redirect_configured=bool(config.defaults.redirect_url),
        default_denied_configured=bool(config.defaults.denied_url),
    )
    return config


def _read_config_file(found_path: str) -> dict:
    logger.info("Loading config", path=found_path)
    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _fail(
            f"Failed to parse {found_path}: {exc}\n"
            "Verigate refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
    except OSError as exc:
        _fail(f"Could not read {found_path}: {exc}")

    if not isinstance(raw, dict):
        if raw is None:
            _fail(
                f"{found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        _fail(
            f"{found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )

    version = raw.get("version")
    if version is None:
        _fail(
            f"{found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        _fail(
            f"Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )
    return raw


def _with_env_overrides(config: Config, environ: Mapping[str, str], strict: bool) -> Config:
    """Return *config* with environment overrides applied.

    With ``strict`` a bad PORT / ANURA_TIMEOUT_S exits the process; otherwise
    the ValueError propagates to the caller.
    """
    vendor = config.vendor
    defaults = config.defaults
    server = config.server

    if environ.get("ANURA_INSTANCE_ID"):
        vendor = dataclasses.replace(vendor, instance_id=environ["ANURA_INSTANCE_ID"])
    if environ.get("ANURA_API_KEY"):
        vendor = dataclasses.replace(vendor, api_key=environ["ANURA_API_KEY"])
    if environ.get("ANURA_TIMEOUT_S"):
        timeout = (
            _parse_timeout(environ["ANURA_TIMEOUT_S"], "ANURA_TIMEOUT_S")
            if strict
            else _to_timeout(environ["ANURA_TIMEOUT_S"])
        )
        vendor = dataclasses.replace(vendor, timeout_s=timeout)

    if environ.get("DEFAULT_REDIRECT_URL"):
        defaults = dataclasses.replace(defaults, redirect_url=environ["DEFAULT_REDIRECT_URL"])
    if environ.get("DEFAULT_DENIED_URL"):
        defaults = dataclasses.replace(defaults, denied_url=environ["DEFAULT_DENIED_URL"])

    if environ.get("HOST"):
        server = dataclasses.replace(server, host=environ["HOST"])
    if environ.get("PORT"):
        port = _parse_port(environ["PORT"], "PORT") if strict else _to_port(environ["PORT"])
        server = dataclasses.replace(server, port=port)

    return dataclasses.replace(config, vendor=vendor, defaults=defaults, server=server)


def _validate(config: Config) -> None:
    missing = config.missing_settings()
    if missing:
        _fail(
            f"Missing required settings: {', '.join(missing)}.\n"
            "Set them in the environment, a .env file, or the vendor: section "
            "of the config file."
        )
    for name, value in (
        ("defaults.redirect_url", config.defaults.redirect_url),
        ("defaults.denied_url", config.defaults.denied_url),
    ):
        if value is not None and not is_valid_url(value):
            _fail(f"{name} is not an absolute URL: '{value}'")


def _to_port(value: object) -> int:
    port = int(value)  # type: ignore[arg-type]
    if not 0 < port < 65536:
        raise ValueError(f"port out of range: {port}")
    return port


def _to_timeout(value: object) -> float:
    timeout = float(value)  # type: ignore[arg-type]
    if not math.isfinite(timeout) or timeout <= 0:
        raise ValueError(f"timeout must be a positive number: {value!r}")
    return timeout


def _parse_port(value: object, name: str) -> int:
    try:
        return _to_port(value)
    except (TypeError, ValueError):
        _fail(f"{name} is not a valid port (1-65535): '{value}'")


def _parse_timeout(value: object, name: str) -> float:
    try:
        return _to_timeout(value)
    except (TypeError, ValueError):
        _fail(f"{name} is not a positive number of seconds: '{value}'")


def _section(raw: dict, name: str) -> dict:
    section = raw.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        _fail(f"'{name}' must be a YAML mapping, got {type(section).__name__}")
    return section


def _fail(message: str) -> NoReturn:
    print(f"CONFIG ERROR: {message}", file=sys.stderr)
    raise SystemExit(1)
