from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from models.errors import ConfigError
from services.resampler import bucket_width_from_seconds


_TIMEZONE_ENV = "TRACK_TIMEZONE"
_BUCKET_SECONDS_ENV = "TRACK_BUCKET_SECONDS"
ACCESS_TOKEN_ENV = "MAPBOX_TOKEN"
_STORE_ROOT_ENV = "TRACK_STORE_ROOT"
_RESULTS_PATH_ENV = "TRACK_RESULTS_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class TrackConfig:
    """Options that shape a single load/resample/render run."""

    timezone: str
    bucket_width: timedelta
    access_token: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    timezone: str
    bucket_seconds: float
    access_token: Optional[str]
    store_root_path: Optional[str]
    results_path: Optional[str]
    log_level: str

    def track_config(self) -> TrackConfig:
        return TrackConfig(
            timezone=self.timezone,
            bucket_width=bucket_width_from_seconds(self.bucket_seconds),
            access_token=self.access_token,
        )


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


def _read_bucket_seconds(default: float) -> float:
    value = os.getenv(_BUCKET_SECONDS_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError as exc:
        raise ConfigError(_BUCKET_SECONDS_ENV, value, "not a number") from exc
    bucket_width_from_seconds(parsed, _BUCKET_SECONDS_ENV)
    return parsed


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
        timezone=_read_str_env(_TIMEZONE_ENV, "Asia/Jerusalem"),
        bucket_seconds=_read_bucket_seconds(60.0),
        access_token=_read_optional_env(ACCESS_TOKEN_ENV, None),
        store_root_path=_read_optional_env(_STORE_ROOT_ENV, "./tmp/tracks"),
        results_path=_read_optional_env(_RESULTS_PATH_ENV, "./tmp/track_results.json"),
        log_level=_read_log_level("INFO"),
    )
