from __future__ import annotations

from datetime import timedelta
from typing import Iterable

import pytest

from datastore.result_table import build_default_table
from models.errors import ConfigError
from services.tracks import build_default_service
from settings import get_settings
from storage.track_store import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (
    get_settings,
    build_default_store,
    build_default_table,
    build_default_service,
)


@pytest.fixture(autouse=True)
def _reset_caches():
    _clear_caches(CACHES)
    yield
    _clear_caches(CACHES)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    store_root = tmp_path / "tracks"
    results_path = tmp_path / "results.json"

    monkeypatch.setenv("TRACK_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("TRACK_BUCKET_SECONDS", "30")
    monkeypatch.setenv("MAPBOX_TOKEN", " pk.env ")
    monkeypatch.setenv("TRACK_STORE_ROOT", str(store_root))
    monkeypatch.setenv("TRACK_RESULTS_PATH", str(results_path))

    service = build_default_service()

    assert service.config.timezone == "Europe/Berlin"
    assert service.config.bucket_width == timedelta(seconds=30)
    assert service.config.access_token == "pk.env"
    assert service.store.root_path == store_root
    assert service.table.persistence_path == results_path


def test_defaults(monkeypatch) -> None:
    for name in ("TRACK_TIMEZONE", "TRACK_BUCKET_SECONDS", "MAPBOX_TOKEN", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.timezone == "Asia/Jerusalem"
    assert settings.bucket_seconds == 60.0
    assert settings.access_token is None
    assert settings.log_level == "INFO"
    assert settings.track_config().bucket_width == timedelta(minutes=1)


def test_blank_paths_keep_stores_in_memory(monkeypatch) -> None:
    monkeypatch.setenv("TRACK_STORE_ROOT", "  ")
    monkeypatch.setenv("TRACK_RESULTS_PATH", "")

    assert build_default_store().root_path is None
    assert build_default_table().persistence_path is None


@pytest.mark.parametrize("value", ["0", "-5", "soon", "inf", "nan", "1e300"])
def test_invalid_bucket_seconds_is_a_config_error(monkeypatch, value: str) -> None:
    monkeypatch.setenv("TRACK_BUCKET_SECONDS", value)

    with pytest.raises(ConfigError) as excinfo:
        get_settings()

    assert excinfo.value.option == "TRACK_BUCKET_SECONDS"
