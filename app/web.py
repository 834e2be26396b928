from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from models.errors import ConfigError, RenderError
from services.tracks import TrackService, build_default_service


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_service() -> TrackService:
    return build_default_service()


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    service: TrackService = Depends(get_service),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {"results": service.list_results()},
    )


@router.get("/tracks/{track_id}/map", name="track_map", response_class=HTMLResponse)
async def track_map(
    track_id: str,
    service: TrackService = Depends(get_service),
) -> HTMLResponse:
    try:
        html = service.render_track(track_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc.args[0]),
        ) from exc
    except ConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except RenderError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return HTMLResponse(html)
