from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Gateway
    api_url: str = os.getenv("PROXYCTL_API_URL", "http://localhost:8090/api")
    request_timeout_s: int = _env_int("PROXYCTL_REQUEST_TIMEOUT_S", 10)

    # Convergence
    # Grace period after an accepted reload before re-reading applied state.
    settle_delay_s: float = _env_float("PROXYCTL_SETTLE_DELAY_S", 0.1)
    health_interval_s: float = _env_float("PROXYCTL_HEALTH_INTERVAL_S", 30.0)

    # Event journal
    db_path: str = os.getenv("PROXYCTL_DB_PATH", "proxyctl.db")
    enable_events: bool = _env_bool("PROXYCTL_ENABLE_EVENTS", True)


settings = Settings()
