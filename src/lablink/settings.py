"""Static configuration for lablink.

All settings come from environment variables (optionally via a .env file) and
are read exactly once at startup. Missing credentials or an empty recipient
list abort the process before it serves any traffic.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from lablink.adapters.gitlab_client import DEFAULT_BASE_URL

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# Secrets are masked in every log line once logging is configured.
SECRET_NAMES = ("SECRET_TOKEN", "SLACK_TOKEN", "GITLAB_TOKEN")


class ConfigError(RuntimeError):
    """A required setting is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    secret_token: str
    bot_name: str
    slack_token: str
    gitlab_token: str
    gitlab_url: str
    active_users: str
    ssl_key_path: str
    ssl_cert_path: str
    host: str
    port: int
    refresh_interval_minutes: float
    dispatch_queue_size: int
    log_level: str
    log_file: str

    @property
    def use_ssl(self) -> bool:
        """TLS is used only when both the key and the certificate exist."""

        return (
            bool(self.ssl_key_path)
            and bool(self.ssl_cert_path)
            and os.path.isfile(self.ssl_key_path)
            and os.path.isfile(self.ssl_cert_path)
        )

    def secrets(self) -> list[str]:
        return [self.secret_token, self.slack_token, self.gitlab_token]


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "")
    # Fail fast on missing credentials rather than at the first webhook.
    if not value:
        raise ConfigError(f"{name} must not be empty")
    return value


def _number(environ: Mapping[str, str], name: str, default: str, kind: type) -> float:
    raw = environ.get(name) or default
    try:
        value = kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from the environment.

    When no mapping is given, a .env file in the working directory is loaded
    first, the same way the credentials were always read.

    Raises:
        ConfigError: a required value is missing or a number is malformed.
    """

    if environ is None:
        load_dotenv()
        environ = os.environ

    active_users = environ.get("ACTIVE_USERS", "")
    if not any(name for name in active_users.split(",")):
        raise ConfigError("ACTIVE_USERS must not be empty")

    return Settings(
        secret_token=_require(environ, "SECRET_TOKEN"),
        bot_name=environ.get("BOT_NAME") or "lablink",
        slack_token=_require(environ, "SLACK_TOKEN"),
        gitlab_token=_require(environ, "GITLAB_TOKEN"),
        gitlab_url=environ.get("GITLAB_URL") or DEFAULT_BASE_URL,
        active_users=active_users,
        ssl_key_path=environ.get("SSL_KEY_PATH", ""),
        ssl_cert_path=environ.get("SSL_CERT_PATH", ""),
        host=environ.get("HOST") or "0.0.0.0",
        port=int(_number(environ, "PORT", "9090", int)),
        refresh_interval_minutes=_number(environ, "REFRESH_INTERVAL_MINUTES", "180", float),
        dispatch_queue_size=int(_number(environ, "DISPATCH_QUEUE_SIZE", "100", int)),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        log_file=environ.get("LOG_FILE", ""),
    )
