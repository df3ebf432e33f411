from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float | None = None
    read_timeout_seconds: float | None = None
    max_connections: int = 10
    verify_ssl: bool = True
    inventory_cache_seconds: float = 300.0
    orders_cache_seconds: float = 120.0
    log_level: str = "INFO"

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()

    @property
    def timeout(self) -> tuple[float | None, float | None] | None:
        """requests-style timeout, or None to keep the transport default."""
        if self.connect_timeout_seconds is None and self.read_timeout_seconds is None:
            return None
        return (self.connect_timeout_seconds, self.read_timeout_seconds)


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_optional_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    value = _read_float(name, raw)
    _validate(value > 0, f"Invalid {name}: expected > 0, got {value}")
    return value


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("FARANUX_ENV") or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"FARANUX_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("FARANUX_API_BASE_URL") or "").strip()
    )

    connect_timeout_seconds = _read_optional_float("FARANUX_CONNECT_TIMEOUT_SECONDS")
    read_timeout_seconds = _read_optional_float("FARANUX_READ_TIMEOUT_SECONDS")

    max_connections = _read_int("FARANUX_MAX_CONNECTIONS", "10")
    _validate(
        max_connections >= 1,
        f"Invalid FARANUX_MAX_CONNECTIONS: expected >= 1, got {max_connections}",
    )

    inventory_cache_seconds = _read_float("FARANUX_INVENTORY_CACHE_SECONDS", "300")
    _validate(
        inventory_cache_seconds > 0,
        f"Invalid FARANUX_INVENTORY_CACHE_SECONDS: expected > 0, got {inventory_cache_seconds}",
    )

    orders_cache_seconds = _read_float("FARANUX_ORDERS_CACHE_SECONDS", "120")
    _validate(
        orders_cache_seconds > 0,
        f"Invalid FARANUX_ORDERS_CACHE_SECONDS: expected > 0, got {orders_cache_seconds}",
    )

    log_level = (os.getenv("FARANUX_LOG_LEVEL") or "INFO").strip().upper()
    _validate(
        log_level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"},
        f"Invalid FARANUX_LOG_LEVEL: got {log_level!r}",
    )

    verify_ssl = _coerce_bool(os.getenv("FARANUX_VERIFY_SSL"), True)

    values = {"FARANUX_API_BASE_URL": api_base_url}
    _require(values, ["FARANUX_API_BASE_URL"])

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        max_connections=max_connections,
        verify_ssl=verify_ssl,
        inventory_cache_seconds=inventory_cache_seconds,
        orders_cache_seconds=orders_cache_seconds,
        log_level=log_level,
    )
