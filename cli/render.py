from __future__ import annotations

import csv
import io
import json
from enum import Enum
from typing import Any, Dict, Iterable, Sequence

import typer

from models.records import Sample


class OutputFormat(str, Enum):
    table = "table"
    csv = "csv"
    json = "json"


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_time(sample: Sample) -> str:
    return sample.timestamp.isoformat(sep=" ", timespec="milliseconds")


def render_samples(samples: Sequence[Sample], fmt: OutputFormat = OutputFormat.table) -> None:
    if fmt is OutputFormat.json:
        payload = [
            {
                "time": sample.timestamp.isoformat(timespec="milliseconds"),
                "lat": sample.latitude,
                "lng": sample.longitude,
                "height": sample.elevation,
            }
            for sample in samples
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    if fmt is OutputFormat.csv:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["time", "lat", "lng", "height"])
        for sample in samples:
            writer.writerow(
                [_format_time(sample), sample.latitude, sample.longitude, sample.elevation]
            )
        typer.echo(buffer.getvalue(), nl=False)
        return

    echo_heading(f"{'time':<30} {'lat':>12} {'lng':>12} {'height':>10}")
    for sample in samples:
        typer.echo(
            f"{_format_time(sample):<30} {sample.latitude:>12.6f} "
            f"{sample.longitude:>12.6f} {sample.elevation:>10.2f}"
        )
    typer.echo(f"{len(samples)} buckets")


def render_upload(payload: Dict[str, Any]) -> None:
    echo_key_values(
        [
            ("track_id", payload.get("track_id")),
            ("raw_count", payload.get("raw_count")),
            ("bucket_count", payload.get("bucket_count")),
        ]
    )


def render_result(payload: Dict[str, Any]) -> None:
    echo_heading("Track")
    echo_key_values(
        [
            ("track_id", payload.get("track_id")),
            ("source_name", payload.get("source_name")),
            ("timezone", payload.get("timezone")),
            ("bucket_seconds", payload.get("bucket_seconds")),
            ("raw_count", payload.get("raw_count")),
            ("created_at", payload.get("created_at")),
        ]
    )

    samples = payload.get("samples") or []
    typer.echo()
    echo_heading("Samples")
    if not samples:
        typer.echo("No samples recorded.")
        return
    for sample in samples:
        typer.echo(
            f"  - {sample.get('timestamp')}: lat={sample.get('latitude')} "
            f"lng={sample.get('longitude')} height={sample.get('elevation')}"
        )
    start = payload.get("start") or {}
    typer.echo(f"start: {start.get('timestamp')}")
