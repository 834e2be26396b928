"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status

from app.schemas import TrackResult, TrackUploadResponse
from models.errors import ConfigError, DecodeError, ParseError, TrackIOError
from services.resampler import bucket_width_from_seconds
from services.tracks import TrackService, build_default_service

router = APIRouter()


def get_service() -> TrackService:
    return build_default_service()


@router.post(
    "/tracks",
    status_code=status.HTTP_201_CREATED,
    response_model=TrackUploadResponse,
    summary="Upload a GPS track CSV and resample it.",
)
async def upload_track(
    file: UploadFile = File(..., description="CSV file with time,lat,lng,height columns."),
    bucket_seconds: Optional[float] = Query(
        None, description="Bucket width in seconds; defaults to the configured width."
    ),
    service: TrackService = Depends(get_service),
) -> TrackUploadResponse:
    contents = await file.read()
    await file.close()
    try:
        width = bucket_width_from_seconds(bucket_seconds) if bucket_seconds is not None else None
        result = service.ingest(file.filename or "track.csv", contents, bucket_width=width)
    except (DecodeError, ParseError, ConfigError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except TrackIOError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return TrackUploadResponse(
        track_id=result.track_id,
        raw_count=result.raw_count,
        bucket_count=len(result.samples),
    )


@router.get(
    "/tracks/{track_id}",
    response_model=TrackResult,
    summary="Fetch the resampled series for a track.",
)
async def get_track(
    track_id: str,
    service: TrackService = Depends(get_service),
) -> TrackResult:
    try:
        return service.fetch_result(track_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc.args[0]),
        ) from exc


@router.delete(
    "/tracks/{track_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a stored track and its raw upload.",
)
async def delete_track(
    track_id: str,
    service: TrackService = Depends(get_service),
) -> Response:
    try:
        service.delete_track(track_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc.args[0]),
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
