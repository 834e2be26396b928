"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Sample:
    """A single GPS observation, either raw or averaged over a bucket."""

    timestamp: datetime
    latitude: float
    longitude: float
    elevation: float

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None or self.timestamp.utcoffset() is None:
            raise ValueError("Sample timestamp must be timezone-aware.")
