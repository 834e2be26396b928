"""Orchestration of loading, resampling, storing and rendering tracks."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, TextIO, Union
from uuid import uuid4

from app.schemas import SamplePayload, TrackResult
from datastore.result_table import ResultTable, build_default_table
from models.errors import DecodeError, TrackIOError
from models.records import Sample
from services.loader import TrackLoader
from services.renderer import MapRenderer
from services.resampler import Resampler
from settings import TrackConfig, get_settings
from storage.track_store import TrackStore, build_default_store

logger = logging.getLogger(__name__)


class TrackService:
    """Coordinates the loader, resampler and renderer with the stores."""

    def __init__(
        self,
        config: TrackConfig,
        renderer: MapRenderer,
        store: Optional[TrackStore] = None,
        table: Optional[ResultTable] = None,
    ) -> None:
        self.config = config
        self.loader = TrackLoader(config.timezone)
        self.resampler = Resampler(config.bucket_width)
        self.renderer = renderer
        self.store = store if store is not None else TrackStore()
        self.table = table if table is not None else ResultTable()

    def resample_stream(
        self,
        stream: TextIO,
        source: str = "<stream>",
        bucket_width: Optional[timedelta] = None,
    ) -> List[Sample]:
        """Load every row of ``stream`` and resample it in one go."""
        raw = self.loader.load(stream, source=source)
        return self.resampler.resample(raw, bucket_width)

    def resample_path(
        self, path: Union[str, Path], bucket_width: Optional[timedelta] = None
    ) -> List[Sample]:
        raw = self.loader.load_path(path)
        return self.resampler.resample(raw, bucket_width)

    def render(self, samples: List[Sample], title: str = "Track") -> str:
        return self.renderer.render(samples, self.config.access_token, title=title)

    def ingest(
        self,
        filename: str,
        contents: bytes,
        bucket_width: Optional[timedelta] = None,
    ) -> TrackResult:
        """Store an uploaded CSV and persist its resampled series.

        Nothing is kept when loading or resampling fails.
        """
        if not contents:
            raise DecodeError("uploaded file is empty", 1)

        start_time = time.perf_counter()
        width = self.resampler.bucket_width if bucket_width is None else bucket_width
        track_id = str(uuid4())
        source_name = Path(filename or "track.csv").name
        key = f"{track_id}/{source_name}"

        self.store.put_object(key, contents)
        try:
            with self.store.open_text_object(key) as handle:
                raw = self.loader.load(handle, source=source_name)
            samples = self.resampler.resample(raw, width)
        except UnicodeDecodeError as exc:
            self.store.delete_object(key)
            raise DecodeError(f"file is not valid UTF-8: {exc.reason}", 1) from exc
        except Exception:
            self.store.delete_object(key)
            raise

        result = TrackResult(
            track_id=track_id,
            source_name=source_name,
            timezone=self.config.timezone,
            bucket_seconds=width.total_seconds(),
            raw_count=len(raw),
            created_at=datetime.now(timezone.utc),
            samples=[SamplePayload.from_sample(sample) for sample in samples],
        )
        try:
            self.table.put_item(result)
        except TrackIOError:
            self.store.delete_object(key)
            raise

        logger.info(
            "Stored resampled track",
            extra={
                "track_id": track_id,
                "object_key": key,
                "raw_count": result.raw_count,
                "bucket_count": len(samples),
                "processing_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return result

    def fetch_result(self, track_id: str) -> TrackResult:
        result = self.table.get_item(track_id)
        if result is None:
            raise KeyError(f"Track {track_id!r} not found.")
        return result

    def list_results(self) -> List[TrackResult]:
        return self.table.scan()

    def delete_track(self, track_id: str) -> TrackResult:
        """Remove a stored track together with its raw upload."""
        result = self.table.delete_item(track_id)
        if result is None:
            raise KeyError(f"Track {track_id!r} not found.")
        self.store.delete_object(f"{track_id}/{result.source_name}")
        logger.info("Deleted track", extra={"track_id": track_id})
        return result

    def render_track(self, track_id: str) -> str:
        result = self.fetch_result(track_id)
        samples = [payload.to_sample() for payload in result.samples]
        return self.render(samples, title=result.source_name)


@lru_cache
def build_default_service() -> TrackService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    return TrackService(
        config=settings.track_config(),
        renderer=MapRenderer.from_directory(),
        store=build_default_store(),
        table=build_default_table(),
    )
