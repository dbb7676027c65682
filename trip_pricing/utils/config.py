"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_ENV_PREFIX = "TRIP_PRICING_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{_ENV_PREFIX}{name}", default)


def _env_float(name: str, default: float) -> float:
    raw_value = _env(name, str(default))
    try:
        return float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be a number, got '{raw_value}'") from exc


def _env_int(name: str, default: int) -> int:
    raw_value = _env(name, str(default))
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer, got '{raw_value}'") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    host: str
    port: int
    reporting_currency: str
    default_gst_percentage: float
    default_tcs_percentage: float
    default_allocation_strategy: str
    optimizer_max_time_seconds: float
    optimizer_max_conflicts: int
    optimizer_random_seed: int
    optimizer_workers: int
    objective_scale: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; call ``cache_clear`` to reload."""
    return Settings(
        app_name=_env("APP_NAME", "Trip Pricing Engine"),
        app_version=_env("APP_VERSION", "1.0.0"),
        log_level=_env("LOG_LEVEL", "INFO"),
        host=_env("HOST", "127.0.0.1"),
        port=_env_int("PORT", 8000),
        reporting_currency=_env("REPORTING_CURRENCY", "INR").strip().upper(),
        default_gst_percentage=_env_float("GST_PERCENTAGE", 5.0),
        default_tcs_percentage=_env_float("TCS_PERCENTAGE", 5.0),
        default_allocation_strategy=_env("ALLOCATION_STRATEGY", "greedy").strip().lower(),
        optimizer_max_time_seconds=_env_float("OPTIMIZER_MAX_TIME_SECONDS", 2.0),
        optimizer_max_conflicts=_env_int("OPTIMIZER_MAX_CONFLICTS", 100000),
        optimizer_random_seed=_env_int("OPTIMIZER_RANDOM_SEED", 42),
        optimizer_workers=_env_int("OPTIMIZER_WORKERS", 1),
        objective_scale=_env_int("OBJECTIVE_SCALE", 100),
    )
