"""Runtime settings read from the environment.

``.env`` files are loaded by the CLI before these helpers run, so every
value here can come from either the shell or a local ``.env``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from .errors import ConfigError


DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_RELAY_URL = "https://formspree.io/f/xwprgply"
DEFAULT_RELAY_TIMEOUT = 10.0
SHUTDOWN_TIMEOUT = 10.0
PRODUCTION = "production"
DEVELOPMENT = "development"

STATIC_DIR = Path(__file__).resolve().parent.parent / "public"


@dataclass
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    env: str = DEVELOPMENT
    relay_url: str = DEFAULT_RELAY_URL
    relay_timeout: float = DEFAULT_RELAY_TIMEOUT
    static_dir: Path = STATIC_DIR
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    shutdown_timeout: float = SHUTDOWN_TIMEOUT

    @property
    def is_dev(self) -> bool:
        return self.env != PRODUCTION

    @property
    def static_max_age(self) -> int:
        return 0 if self.is_dev else 86400


def parse_port(value: object) -> int:
    """Return ``value`` as a TCP port or raise :class:`ConfigError`."""

    try:
        port = int(str(value).strip())
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid PORT configuration: {value!r}")
    if port < 1 or port > 65535:
        raise ConfigError(f"Invalid PORT configuration: {value!r}")
    return port


def _parse_timeout(value: str) -> float:
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigError(f"Invalid RELAY_TIMEOUT configuration: {value!r}")
    if timeout <= 0:
        raise ConfigError(f"Invalid RELAY_TIMEOUT configuration: {value!r}")
    return timeout


def load_settings(environ: Optional[Mapping[str, str]] = None, **overrides: object) -> Settings:
    """Build :class:`Settings` from ``environ`` (defaults to ``os.environ``).

    Keyword ``overrides`` win over the environment; ``None`` values are
    ignored so CLI options can be passed straight through.
    """

    env = os.environ if environ is None else environ
    values = {
        "host": env.get("HOST", DEFAULT_HOST),
        "port": env.get("PORT", DEFAULT_PORT),
        "env": env.get("PORTFOLIO_ENV", DEVELOPMENT),
        "relay_url": env.get("RELAY_URL", DEFAULT_RELAY_URL),
        "relay_timeout": env.get("RELAY_TIMEOUT"),
        "static_dir": env.get("STATIC_DIR"),
        "cors_origins": env.get("CORS_ORIGINS"),
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    origins = values["cors_origins"]
    if isinstance(origins, str):
        origins = [origin.strip() for origin in origins.split(",") if origin.strip()]

    timeout = values["relay_timeout"]
    if isinstance(timeout, str):
        timeout = _parse_timeout(timeout)

    return Settings(
        host=str(values["host"]),
        port=parse_port(values["port"]),
        env=str(values["env"]).lower(),
        relay_url=str(values["relay_url"]),
        relay_timeout=float(timeout) if timeout is not None else DEFAULT_RELAY_TIMEOUT,
        static_dir=Path(values["static_dir"]).expanduser().resolve() if values["static_dir"] else STATIC_DIR,
        cors_origins=list(origins) if origins else ["*"],
    )
