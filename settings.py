from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_TICK_INTERVAL_ENV = "FLOOD_TICK_INTERVAL_MS"
_SPEED_ENV = "FLOOD_SIMULATION_SPEED"
_POLL_INTERVAL_ENV = "FLOOD_POLL_INTERVAL_MS"
_RECOMMENDATION_INTERVAL_ENV = "FLOOD_RECOMMENDATION_INTERVAL_MS"
_LANG_ENV = "FLOOD_LANG"
_SEED_ENV = "FLOOD_RANDOM_SEED"
_TABLE_PATH_ENV = "FLOOD_TABLE_PERSISTENCE_PATH"
_FEEDER_ENV = "FLOOD_FEEDER_ENABLED"
_GEMINI_KEY_ENV = "GEMINI_API_KEY"
_GEMINI_MODEL_ENV = "GEMINI_MODEL"
_LOG_LEVEL_ENV = "LOG_LEVEL"

SUPPORTED_LANGS = ("kz", "ru")


@dataclass(frozen=True)
class Settings:
    tick_interval_ms: int
    simulation_speed: int
    poll_interval_ms: int
    recommendation_interval_ms: int
    lang: str
    random_seed: Optional[int]
    table_persistence_path: Optional[str]
    feeder_enabled: bool
    gemini_api_key: Optional[str]
    gemini_model: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _read_lang(default: str) -> str:
    candidate = _read_str_env(_LANG_ENV, default).lower()
    return candidate if candidate in SUPPORTED_LANGS else default


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
        tick_interval_ms=_read_positive_int(_TICK_INTERVAL_ENV, 5000),
        simulation_speed=_read_positive_int(_SPEED_ENV, 1),
        poll_interval_ms=_read_positive_int(_POLL_INTERVAL_ENV, 15000),
        recommendation_interval_ms=_read_positive_int(_RECOMMENDATION_INTERVAL_ENV, 30000),
        lang=_read_lang("kz"),
        random_seed=_read_optional_int(_SEED_ENV),
        table_persistence_path=_read_optional_env(_TABLE_PATH_ENV, "./tmp/flood_db.json"),
        feeder_enabled=_read_bool(_FEEDER_ENV, False),
        gemini_api_key=_read_optional_env(_GEMINI_KEY_ENV, None),
        gemini_model=_read_str_env(_GEMINI_MODEL_ENV, "gemini-2.5-flash-lite"),
        log_level=_read_log_level("INFO"),
    )
