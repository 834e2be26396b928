from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import NoReturn, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import OutputFormat, render_result, render_samples, render_upload
from logging_config import configure_logging
from models.errors import TrackError
from services.renderer import MapRenderer
from services.tracks import TrackService
from settings import TrackConfig


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Resample GPS tracks into fixed-width buckets and render them on a map.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _fail(exc: TrackError) -> NoReturn:
    typer.secho(f"error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _local_service(config: TrackConfig) -> TrackService:
    try:
        return TrackService(config=config, renderer=MapRenderer.from_directory())
    except TrackError as exc:
        _fail(exc)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Track API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timezone: Optional[str] = typer.Option(
        None,
        "--timezone",
        "-z",
        help="Target timezone for timestamps (defaults to TRACK_TIMEZONE env).",
    ),
    bucket_seconds: Optional[float] = typer.Option(
        None,
        "--bucket-seconds",
        "-w",
        help="Bucket width in seconds (defaults to TRACK_BUCKET_SECONDS env or 60).",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log pipeline progress to stderr."
    ),
) -> None:
    """Entry point for the CLI."""
    try:
        configure_logging("INFO" if verbose else "WARNING")
        config = load_config(
            base_url=base_url,
            timezone=timezone,
            bucket_seconds=bucket_seconds,
        )
    except TrackError as exc:
        _fail(exc)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("resample")
def resample_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., dir_okay=False, help="Path to track CSV file."),
    fmt: OutputFormat = typer.Option(
        OutputFormat.table, "--format", "-f", help="Output format."
    ),
) -> None:
    """Resample a local track file and print the buckets."""
    service = _local_service(_get_state(ctx).config.track)
    try:
        samples = service.resample_path(file)
    except TrackError as exc:
        _fail(exc)
    render_samples(samples, fmt)


@app.command("render")
def render_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., dir_okay=False, help="Path to track CSV file."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="Write HTML here instead of stdout."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Map access token (defaults to MAPBOX_TOKEN env)."
    ),
) -> None:
    """Resample a local track file and render it as an HTML map."""
    track = _get_state(ctx).config.track
    if token:
        track = replace(track, access_token=token)
    service = _local_service(track)
    try:
        html = service.render(service.resample_path(file), title=file.name)
    except TrackError as exc:
        _fail(exc)

    if output is None:
        typer.echo(html)
        return
    output.write_text(html, encoding="utf-8")
    typer.secho(f"Map written to {output}", fg=typer.colors.GREEN, err=True)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to track CSV file."),
    bucket_seconds: Optional[float] = typer.Option(
        None,
        "--bucket-seconds",
        help="Override the server's bucket width for this upload.",
    ),
) -> None:
    """Upload a track file to the service for resampling."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    payload = state.client.upload_track(file, bucket_seconds=bucket_seconds)
    typer.secho("Upload accepted.", fg=typer.colors.GREEN)
    render_upload(payload)


@app.command("result")
def result_command(
    ctx: typer.Context,
    track_id: str = typer.Argument(..., help="Identifier returned from the upload command."),
) -> None:
    """Fetch the resampled series for an uploaded track."""
    state = _get_state(ctx)
    payload = state.client.get_result(track_id)
    render_result(payload)
