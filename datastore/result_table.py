"""Persisted results of resampled tracks."""

from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from pydantic import ValidationError

from app.schemas import TrackResult
from models.errors import TrackIOError
from settings import get_settings

logger = logging.getLogger(__name__)


class ResultTable:
    """Resampled tracks keyed by ``track_id``.

    Every write rewrites the JSON file when a persistence path is set; a write
    that cannot reach the disk leaves the in-memory table unchanged.
    """

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._items: Dict[str, TrackResult] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, item: TrackResult) -> None:
        with self._lock:
            previous = self._items.get(item.track_id)
            self._items[item.track_id] = item.model_copy(deep=True)
            try:
                self._persist()
            except OSError as exc:
                if previous is None:
                    del self._items[item.track_id]
                else:
                    self._items[item.track_id] = previous
                raise TrackIOError(f"cannot write {self.persistence_path}: {exc}") from exc

    def get_item(self, track_id: str) -> Optional[TrackResult]:
        with self._lock:
            item = self._items.get(track_id)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def delete_item(self, track_id: str) -> Optional[TrackResult]:
        """Remove a track, returning it if it was stored."""
        with self._lock:
            item = self._items.pop(track_id, None)
            if item is None:
                return None
            try:
                self._persist()
            except OSError as exc:
                self._items[track_id] = item
                raise TrackIOError(f"cannot write {self.persistence_path}: {exc}") from exc
            return item

    def scan(self) -> list[TrackResult]:
        """Return copies of every stored track, newest first."""

        with self._lock:
            items = [item.model_copy(deep=True) for item in self._items.values()]
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            track_id: item.model_dump(mode="json", exclude={"start"})
            for track_id, item in self._items.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            data = json.loads(self.persistence_path.read_text() or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise TrackIOError(f"cannot load results from {self.persistence_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise TrackIOError(f"results file {self.persistence_path} is not a JSON object")

        for track_id, payload in data.items():
            try:
                self._items[track_id] = TrackResult.model_validate(payload)
            except ValidationError as exc:
                logger.warning(
                    "Skipping unreadable stored track",
                    extra={"track_id": track_id, "reason": exc.errors()[0]["msg"]},
                )
        logger.info("Loaded stored tracks", extra={"raw_count": len(self._items)})


@lru_cache
def build_default_table(path: Optional[str] = None) -> ResultTable:
    settings = get_settings()
    table_path = settings.results_path if path is None else path
    persistence = Path(table_path) if table_path else None
    return ResultTable(persistence_path=persistence)
