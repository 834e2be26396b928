from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from models.errors import ConfigError, DecodeError, ParseError, TrackIOError
from services.loader import TrackLoader, parse_timestamp, resolve_timezone

HEADER = "time,lat,lng,height\n"


def _load(body: str, tz: str = "Asia/Jerusalem"):
    return TrackLoader(tz).load(io.StringIO(HEADER + body))


def test_load_converts_to_target_timezone_and_keeps_row_order() -> None:
    samples = _load(
        "2024-05-01 10:01:05.000,32.1,34.8,12.5\n"
        "2024-05-01 10:00:10.250,32.0,34.7,10.0\n"
    )

    jerusalem = ZoneInfo("Asia/Jerusalem")
    assert [sample.latitude for sample in samples] == [32.1, 32.0]
    first = samples[0].timestamp
    assert first.tzinfo is jerusalem
    assert first == datetime(2024, 5, 1, 10, 1, 5, tzinfo=timezone.utc)
    assert (first.hour, first.minute) == (13, 1)
    assert samples[1].timestamp.microsecond == 250000
    assert samples[0].longitude == 34.8
    assert samples[0].elevation == 12.5


def test_load_accepts_reordered_and_padded_headers() -> None:
    loader = TrackLoader("UTC")
    stream = io.StringIO(" Height ,LNG,lat,Time\n5,34.8,32.1,2024-05-01 10:00:00.000\n")

    (sample,) = loader.load(stream)

    assert (sample.latitude, sample.longitude, sample.elevation) == (32.1, 34.8, 5.0)


def test_explicit_offset_is_honoured() -> None:
    (sample,) = _load("2024-05-01 10:00:00.000+02:00,1,2,3\n", tz="UTC")

    assert sample.timestamp == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def test_zulu_suffix_means_utc() -> None:
    parsed = parse_timestamp("2024-05-01 10:00:00.000Z", row_number=2)

    assert parsed == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_naive_timestamp_is_read_as_utc() -> None:
    parsed = parse_timestamp("2024-05-01 10:00:00.123", row_number=2)

    assert parsed.tzinfo is timezone.utc
    assert parsed.microsecond == 123000


def test_negative_offset() -> None:
    parsed = parse_timestamp("2024-05-01 10:00:00.000-05:30", row_number=2)

    assert parsed.utcoffset() == -timedelta(hours=5, minutes=30)


def test_load_empty_body_returns_no_samples() -> None:
    assert _load("") == []


def test_malformed_timestamp_reports_row() -> None:
    with pytest.raises(ParseError) as excinfo:
        _load(
            "2024-05-01 10:00:00.000,1,2,3\n"
            "not-a-date,1,2,3\n"
        )

    assert excinfo.value.row_number == 3
    assert "not-a-date" in str(excinfo.value)
    assert "row 3" in str(excinfo.value)


@pytest.mark.parametrize(
    "value",
    [
        "2024-05-01 10:00:00",
        "2024-05-01 10:00:00.12",
        "2024-05-01T10:00:00.000",
        "2024-13-01 10:00:00.000",
        "2024-05-01 10:00:00.000+25:00",
        "",
    ],
)
def test_timestamp_must_match_format(value: str) -> None:
    with pytest.raises(ParseError):
        parse_timestamp(value, row_number=2)


def test_extra_field_is_a_decode_error() -> None:
    with pytest.raises(DecodeError) as excinfo:
        _load("2024-05-01 10:00:00.000,1,2,3,4\n")

    assert excinfo.value.row_number == 2
    assert "expected 4 fields" in str(excinfo.value)


def test_missing_field_is_a_decode_error() -> None:
    with pytest.raises(DecodeError) as excinfo:
        _load("2024-05-01 10:00:00.000,1,2\n")

    assert excinfo.value.row_number == 2


def test_non_numeric_field_is_a_decode_error() -> None:
    with pytest.raises(DecodeError) as excinfo:
        _load(
            "2024-05-01 10:00:00.000,1,2,3\n"
            "2024-05-01 10:00:01.000,1,east,3\n"
        )

    assert excinfo.value.row_number == 3
    assert "lng" in str(excinfo.value)


def test_non_finite_field_is_a_decode_error() -> None:
    with pytest.raises(DecodeError):
        _load("2024-05-01 10:00:00.000,nan,2,3\n")


def test_missing_columns_fail_on_header() -> None:
    loader = TrackLoader("UTC")

    with pytest.raises(DecodeError) as excinfo:
        loader.load(io.StringIO("time,lat,lng\n2024-05-01 10:00:00.000,1,2\n"))

    assert excinfo.value.row_number == 1
    assert "height" in str(excinfo.value)


def test_missing_header_fails() -> None:
    with pytest.raises(DecodeError):
        TrackLoader("UTC").load(io.StringIO(""))


@pytest.mark.parametrize("name", ["Foo/Bar", "", "../etc/passwd"])
def test_unknown_timezone_is_a_config_error(name: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        TrackLoader(name)

    assert excinfo.value.option == "timezone"


def test_resolve_timezone_strips_whitespace() -> None:
    assert resolve_timezone(" UTC ") == ZoneInfo("UTC")


def test_load_path_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "track.csv"
    path.write_text(HEADER + "2024-05-01 10:00:00.000,1,2,3\n", encoding="utf-8")

    samples = TrackLoader("UTC").load_path(path)

    assert len(samples) == 1


def test_load_path_missing_file_is_io_error(tmp_path: Path) -> None:
    with pytest.raises(TrackIOError) as excinfo:
        TrackLoader("UTC").load_path(tmp_path / "missing.csv")

    assert "missing.csv" in str(excinfo.value)


def test_load_path_undecodable_file_is_io_error(tmp_path: Path) -> None:
    path = tmp_path / "track.csv"
    path.write_bytes(b"time,lat,lng,height\n\xff\xfe,1,2,3\n")

    with pytest.raises(TrackIOError):
        TrackLoader("UTC").load_path(path)


def test_oversized_field_is_a_decode_error() -> None:
    with pytest.raises(DecodeError) as excinfo:
        _load("2024-05-01 10:00:10.000," + "1" * 200_000 + ",34.8,10\n")

    assert excinfo.value.row_number == 2
    assert "field larger than field limit" in str(excinfo.value)
