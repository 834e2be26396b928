"""CSV loading of raw GPS tracks."""

from __future__ import annotations

import csv
import logging
import math
import re
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models.errors import ConfigError, DecodeError, ParseError, TrackIOError
from models.records import Sample

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
REQUIRED_COLUMNS = ("time", "lat", "lng", "height")

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3})"
    r"(?P<zone>Z|[+-]\d{2}:\d{2})?$",
    re.ASCII,
)


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA timezone, raising :class:`ConfigError` if unknown."""
    candidate = (name or "").strip()
    if not candidate:
        raise ConfigError("timezone", name, "timezone identifier is empty")
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError("timezone", name, "unknown timezone") from exc


def parse_timestamp(value: str, row_number: int) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS.mmm`` with an optional ``Z``/``±HH:MM`` suffix.

    Timestamps without a suffix are taken to be UTC.
    """
    candidate = value.strip()
    match = _TIMESTAMP_RE.match(candidate)
    if match is None:
        raise ParseError(value, row_number)

    try:
        parsed = datetime.strptime(match.group("base"), TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise ParseError(value, row_number) from exc

    zone = match.group("zone")
    if zone is None or zone == "Z":
        return parsed.replace(tzinfo=timezone.utc)

    sign = -1 if zone[0] == "-" else 1
    hours, minutes = int(zone[1:3]), int(zone[4:6])
    if hours > 23 or minutes > 59:
        raise ParseError(value, row_number)
    offset = timedelta(hours=hours, minutes=minutes) * sign
    return parsed.replace(tzinfo=timezone(offset))


def _parse_float(raw: str | None, column: str, row_number: int) -> float:
    candidate = (raw or "").strip()
    if not candidate:
        raise DecodeError(f"missing {column}", row_number)
    try:
        value = float(candidate)
    except ValueError as exc:
        raise DecodeError(f"invalid numeric value for {column}: {candidate!r}", row_number) from exc
    if not math.isfinite(value):
        raise DecodeError(f"non-finite value for {column}: {candidate!r}", row_number)
    return value


def _read_rows(reader: csv.DictReader) -> Iterator[Dict[Optional[str], Any]]:
    rows = iter(reader)
    while True:
        try:
            row = next(rows)
        except StopIteration:
            return
        except csv.Error as exc:
            raise DecodeError(f"malformed CSV: {exc}", reader.line_num) from exc
        yield row


class TrackLoader:
    """Decodes ``time,lat,lng,height`` rows into samples in one timezone."""

    def __init__(self, timezone_name: str) -> None:
        self.timezone_name = timezone_name
        self.tz = resolve_timezone(timezone_name)

    def load_path(self, path: Union[str, Path]) -> List[Sample]:
        source = Path(path)
        try:
            with source.open("r", encoding="utf-8", newline="") as handle:
                return self.load(handle, source=str(source))
        except UnicodeDecodeError as exc:
            raise TrackIOError(f"cannot decode {source} as UTF-8: {exc.reason}") from exc
        except OSError as exc:
            raise TrackIOError(f"cannot read {source}: {exc.strerror or exc}") from exc

    def load(self, stream: TextIO, source: str = "<stream>") -> List[Sample]:
        """Read every row of ``stream``; the first bad row aborts the load."""
        reader = csv.DictReader(stream)
        try:
            fieldnames = reader.fieldnames
        except csv.Error as exc:
            raise DecodeError(f"malformed CSV header: {exc}", max(reader.line_num, 1)) from exc
        if not fieldnames:
            raise DecodeError("CSV file is missing a header row", 1)

        normalized = {name.lower().strip(): name for name in fieldnames if name}
        missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
        if missing:
            raise DecodeError(f"missing required columns: {', '.join(missing)}", 1)

        expected_fields = len(fieldnames)
        samples: list[Sample] = []
        for row in _read_rows(reader):
            row_number = reader.line_num
            if None in row or any(value is None for value in row.values()):
                raise DecodeError(f"expected {expected_fields} fields", row_number)

            timestamp = parse_timestamp(row[normalized["time"]], row_number)
            samples.append(
                Sample(
                    timestamp=timestamp.astimezone(self.tz),
                    latitude=_parse_float(row[normalized["lat"]], "lat", row_number),
                    longitude=_parse_float(row[normalized["lng"]], "lng", row_number),
                    elevation=_parse_float(row[normalized["height"]], "height", row_number),
                )
            )

        logger.info(
            "Loaded track",
            extra={"source": source, "raw_count": len(samples), "timezone": self.timezone_name},
        )
        return samples
