from __future__ import annotations
import io
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Iterator, Optional, TextIO

from settings import get_settings


class TrackStore:
    """Keeps raw uploaded track files, in memory and optionally on disk."""

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self._objects: Dict[str, bytes] = {}
        self.root_path = root_path
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def put_object(self, key: str, data: bytes) -> None:
        with self._lock:
            self._objects[key] = data
            if self.root_path:
                path = self.root_path / key
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)

    def get_object(self, key: str) -> bytes:
        with self._lock:
            data = self._objects.get(key)
            if data is not None:
                return data

        if self.root_path:
            path = self.root_path / key
            if path.is_file():
                data = path.read_bytes()
                with self._lock:
                    self._objects[key] = data
                return data

        raise KeyError(f"Track object {key!r} not found.")

    def delete_object(self, key: str) -> None:
        with self._lock:
            self._objects.pop(key, None)
            if self.root_path:
                path = self.root_path / key
                path.unlink(missing_ok=True)
                if path.parent != self.root_path and not any(path.parent.iterdir()):
                    path.parent.rmdir()

    @contextmanager
    def open_text_object(
        self, key: str, encoding: str = "utf-8", newline: Optional[str] = ""
    ) -> Iterator[TextIO]:
        """Yield a text handle over the stored object."""

        data = self.get_object(key)
        buffer = io.StringIO(data.decode(encoding), newline=newline)
        try:
            yield buffer
        finally:
            buffer.close()

    def list_objects(self) -> Iterable[str]:
        with self._lock:
            keys = set(self._objects)

        if self.root_path:
            for path in self.root_path.rglob("*"):
                if path.is_file():
                    keys.add(path.relative_to(self.root_path).as_posix())

        return sorted(keys)


@lru_cache
def build_default_store(root_path: Optional[str] = None) -> TrackStore:
    settings = get_settings()
    store_root = settings.store_root_path if root_path is None else root_path
    path = Path(store_root) if store_root else None
    return TrackStore(root_path=path)
