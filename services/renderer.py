"""HTML map rendering of resampled tracks."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, select_autoescape

from models.errors import ConfigError, RenderError
from models.records import Sample
from settings import ACCESS_TOKEN_ENV

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
MAP_TEMPLATE = "map.html"


def sample_context(sample: Sample) -> Dict[str, Any]:
    return {
        "time": sample.timestamp.isoformat(timespec="milliseconds"),
        "lat": sample.latitude,
        "lng": sample.longitude,
        "height": sample.elevation,
    }


class MapRenderer:
    """Renders samples into a self-contained Mapbox page.

    The template is compiled once when the renderer is built and reused for
    every render call.
    """

    def __init__(self, template: Template) -> None:
        self.template = template

    @classmethod
    def from_directory(
        cls, directory: Union[str, Path] = TEMPLATE_DIR, name: str = MAP_TEMPLATE
    ) -> "MapRenderer":
        environment = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )
        return cls(environment.get_template(name))

    def render(
        self,
        samples: Sequence[Sample],
        access_token: Optional[str],
        title: str = "Track",
    ) -> str:
        token = (access_token or "").strip()
        if not token:
            raise ConfigError(
                ACCESS_TOKEN_ENV, access_token, "no access token, did you set MAPBOX_TOKEN?"
            )
        if not samples:
            raise RenderError("Cannot render a map without samples.")

        rows = [sample_context(sample) for sample in samples]
        return self.template.render(
            title=title,
            rows=rows,
            start=rows[len(rows) // 2],
            access_token=token,
        )
