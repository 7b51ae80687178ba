from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_CONFIG_PATH_ENV = "LEGIONELLA_CONFIG_PATH"
_CHECKPOINT_PATH_ENV = "LEGIONELLA_CHECKPOINT_PATH"
_HTTP_TIMEOUT_ENV = "LEGIONELLA_HTTP_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    config_path: str
    checkpoint_path: str
    http_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_timeout(default: float) -> float:
    value = os.getenv(_HTTP_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        config_path=_read_str_env(_CONFIG_PATH_ENV, "config.json"),
        checkpoint_path=_read_str_env(_CHECKPOINT_PATH_ENV, "lastCheck.txt"),
        http_timeout=_read_timeout(30.0),
        log_level=_read_log_level("INFO"),
    )
