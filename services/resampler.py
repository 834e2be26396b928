"""Fixed-width time bucketing and averaging of GPS samples."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Sequence

from models.errors import ConfigError
from models.records import Sample

logger = logging.getLogger(__name__)

# Zero time the buckets are aligned to (0001-01-01T00:00:00 UTC).
EPOCH = datetime(1, 1, 1, tzinfo=timezone.utc)


def validate_bucket_width(bucket_width: timedelta) -> timedelta:
    if not isinstance(bucket_width, timedelta):
        raise ConfigError("bucket_width", bucket_width, "must be a duration")
    if bucket_width <= timedelta(0):
        raise ConfigError("bucket_width", bucket_width, "must be positive")
    return bucket_width


def bucket_width_from_seconds(seconds: float, option: str = "bucket_width") -> timedelta:
    """Convert a width in seconds to a validated duration."""
    if not isinstance(seconds, (int, float)) or not math.isfinite(seconds):
        raise ConfigError(option, seconds, "must be a finite number of seconds")
    if seconds <= 0:
        raise ConfigError(option, seconds, "must be positive")
    try:
        width = timedelta(seconds=seconds)
    except (OverflowError, ValueError) as exc:
        raise ConfigError(option, seconds, "too large for a duration") from exc
    if width <= timedelta(0):
        raise ConfigError(option, seconds, "shorter than one microsecond")
    return width


def truncate(timestamp: datetime, bucket_width: timedelta) -> datetime:
    """Floor ``timestamp`` to a multiple of ``bucket_width`` since :data:`EPOCH`.

    The computation works on the absolute instant, so two timestamps naming
    the same instant in different zones share a bucket. The result is
    expressed in the timezone of ``timestamp``.
    """
    validate_bucket_width(bucket_width)
    return _bucket_key(timestamp, bucket_width).astimezone(timestamp.tzinfo)


def _bucket_key(timestamp: datetime, bucket_width: timedelta) -> datetime:
    steps = (timestamp - EPOCH) // bucket_width
    return EPOCH + steps * bucket_width


def bucket_samples(
    samples: Iterable[Sample], bucket_width: timedelta
) -> Dict[datetime, List[Sample]]:
    """Group samples by their truncated timestamp.

    Keys are UTC datetimes. Aware datetimes sharing a tzinfo compare by wall
    clock, which is ambiguous across DST transitions.
    """
    validate_bucket_width(bucket_width)
    buckets: Dict[datetime, List[Sample]] = defaultdict(list)
    for sample in samples:
        buckets[_bucket_key(sample.timestamp, bucket_width)].append(sample)
    return dict(buckets)


def mean_sample(key: datetime, samples: Sequence[Sample]) -> Sample:
    """Average every field of ``samples`` into one sample stamped ``key``."""
    if not samples:
        raise ValueError("Cannot average an empty bucket.")

    zones = {sample.timestamp.tzinfo for sample in samples}
    tz = zones.pop() if len(zones) == 1 else timezone.utc

    count = len(samples)
    return Sample(
        timestamp=key.astimezone(tz),
        latitude=math.fsum(sample.latitude for sample in samples) / count,
        longitude=math.fsum(sample.longitude for sample in samples) / count,
        elevation=math.fsum(sample.elevation for sample in samples) / count,
    )


def resample(samples: Iterable[Sample], bucket_width: timedelta) -> List[Sample]:
    """Average ``samples`` over fixed-width windows, ordered by time."""
    buckets = bucket_samples(samples, bucket_width)
    return [mean_sample(key, buckets[key]) for key in sorted(buckets)]


class Resampler:
    """Pure resampling component bound to a default bucket width."""

    def __init__(self, bucket_width: timedelta) -> None:
        self.bucket_width = validate_bucket_width(bucket_width)

    def resample(
        self, samples: Sequence[Sample], bucket_width: timedelta | None = None
    ) -> List[Sample]:
        width = self.bucket_width if bucket_width is None else bucket_width
        out = resample(samples, width)
        logger.debug(
            "Resampled track",
            extra={
                "raw_count": len(samples),
                "bucket_count": len(out),
                "bucket_seconds": width.total_seconds(),
            },
        )
        return out
