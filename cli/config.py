from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional

from models.errors import ConfigError
from services.resampler import bucket_width_from_seconds
from settings import TrackConfig, get_settings

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_REQUEST_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    track: TrackConfig
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT


def _read_timeout(default: float) -> float:
    value = os.getenv(_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError as exc:
        raise ConfigError(_TIMEOUT_ENV, value, "not a number") from exc
    if not math.isfinite(parsed) or parsed <= 0:
        raise ConfigError(_TIMEOUT_ENV, value, "must be a positive number of seconds")
    return parsed


def load_config(
    base_url: Optional[str] = None,
    timezone: Optional[str] = None,
    bucket_seconds: Optional[float] = None,
    access_token: Optional[str] = None,
) -> CLIConfig:
    """Merge command line overrides over environment settings."""
    settings = get_settings()
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    seconds = bucket_seconds if bucket_seconds is not None else settings.bucket_seconds
    bucket_width = bucket_width_from_seconds(seconds)
    track = TrackConfig(
        timezone=timezone or settings.timezone,
        bucket_width=bucket_width,
        access_token=access_token or settings.access_token,
    )
    return CLIConfig(
        track=track,
        base_url=url.rstrip("/"),
        request_timeout=_read_timeout(DEFAULT_TIMEOUT),
    )
