"""Error hierarchy for loading, resampling and rendering tracks."""

from __future__ import annotations

from typing import Any, Optional


class TrackError(Exception):
    """Base class for every fatal track processing failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class TrackIOError(TrackError):
    """The record source could not be read."""


class DecodeError(TrackError):
    """A row does not have the expected shape or numeric fields."""

    def __init__(self, message: str, row_number: int) -> None:
        super().__init__(f"row {row_number}: {message}")
        self.row_number = row_number
        self.reason = message


class ParseError(TrackError):
    """A timestamp does not match the expected format."""

    def __init__(self, value: str, row_number: int) -> None:
        super().__init__(
            f"row {row_number}: invalid timestamp {value!r} "
            "(expected 'YYYY-MM-DD HH:MM:SS.mmm')"
        )
        self.row_number = row_number
        self.value = value


class ConfigError(TrackError):
    """A configuration value is missing or unusable."""

    def __init__(self, option: str, value: Any, reason: Optional[str] = None) -> None:
        detail = reason or "invalid value"
        super().__init__(f"{option}={value!r}: {detail}")
        self.option = option
        self.value = value


class RenderError(TrackError):
    """The map cannot be rendered from the given samples."""
