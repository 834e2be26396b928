"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from models.records import Sample


class SamplePayload(BaseModel):
    """A resampled observation as exposed via the API."""

    timestamp: datetime
    latitude: float
    longitude: float
    elevation: float

    @classmethod
    def from_sample(cls, sample: Sample) -> "SamplePayload":
        return cls(
            timestamp=sample.timestamp,
            latitude=sample.latitude,
            longitude=sample.longitude,
            elevation=sample.elevation,
        )

    def to_sample(self) -> Sample:
        return Sample(
            timestamp=self.timestamp,
            latitude=self.latitude,
            longitude=self.longitude,
            elevation=self.elevation,
        )


class TrackUploadResponse(BaseModel):
    """Response payload after a track has been resampled and stored."""

    track_id: str = Field(..., description="Generated identifier for the uploaded track.")
    raw_count: int = Field(..., ge=0)
    bucket_count: int = Field(..., ge=0)


class TrackResult(BaseModel):
    """Full record representing a resampled track."""

    track_id: str
    source_name: str
    timezone: str
    bucket_seconds: float = Field(..., gt=0)
    raw_count: int = Field(..., ge=0)
    created_at: datetime
    samples: List[SamplePayload] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def start(self) -> Optional[SamplePayload]:
        """Middle sample of the series, used to center the map."""
        if not self.samples:
            return None
        return self.samples[len(self.samples) // 2]
