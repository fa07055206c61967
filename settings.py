from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from services.timestamps import resolve_timezone


_LOG_LEVEL_ENV = "LOG_LEVEL"
_QUARANTINE_PREFIX_ENV = "READINGS_QUARANTINE_PREFIX"
_TIMEZONE_ENV = "READINGS_TIMEZONE"
_ISOLATE_ROWS_ENV = "READINGS_ISOLATE_ROW_ERRORS"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    log_level: str
    quarantine_prefix: str
    timezone: Optional[str]
    isolate_row_errors: bool


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_timezone(default: Optional[str]) -> Optional[str]:
    value = os.getenv(_TIMEZONE_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        resolve_timezone(candidate)
    except (KeyError, ValueError):
        return default
    return candidate


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
        log_level=_read_log_level("INFO"),
        quarantine_prefix=_read_str_env(_QUARANTINE_PREFIX_ENV, "error_invalid_reading"),
        timezone=_read_timezone(None),
        isolate_row_errors=_read_bool_env(_ISOLATE_ROWS_ENV, False),
    )
