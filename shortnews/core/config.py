from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("", "0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    raise ValueError(f"{name} must be a boolean word (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    redis_url: str | None
    cache_bypass_header: str = "X-Cache-Bypass"
    cache_socket_timeout: float = 5.0

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    log_json = _parse_bool("LOG_JSON", _getenv("LOG_JSON", "false"))
    redis_url = _getenv("REDIS_URL", "") or None

    bypass_header = _getenv("CACHE_BYPASS_HEADER", "X-Cache-Bypass")
    if not bypass_header:
        raise ValueError("CACHE_BYPASS_HEADER must not be empty")

    timeout_raw = _getenv("CACHE_SOCKET_TIMEOUT", "5")
    try:
        socket_timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"CACHE_SOCKET_TIMEOUT must be a number (got {timeout_raw!r})"
        ) from None
    if socket_timeout <= 0:
        raise ValueError(
            f"CACHE_SOCKET_TIMEOUT must be positive (got {timeout_raw!r})"
        )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        port=port,
        redis_url=redis_url,
        cache_bypass_header=bypass_header,
        cache_socket_timeout=socket_timeout,
    )


SETTINGS = load_settings()
