"""
Data model for picshow.

Plain immutable records shared by the controller, its collaborators and the
view: the image records produced by folder enumeration, the persisted
configuration, the playback state and the EXIF metadata shown in the overlay.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path

from .config import DEFAULT_TRANSITION_INTERVAL, MAX_TRANSITION_INTERVAL, MIN_TRANSITION_INTERVAL


def clamp_interval(seconds: float) -> float:
    """Clamp a transition interval into the supported [1, 60] seconds range."""
    return float(min(MAX_TRANSITION_INTERVAL, max(MIN_TRANSITION_INTERVAL, float(seconds))))


class PlaybackState(Enum):
    """Current playback state of the slideshow."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class TransitionStyle(Enum):
    """Visual effect applied when changing images."""

    SLIDE = "slide"
    NONE = "none"


@dataclass(frozen=True)
class ImageRecord:
    """A single image file found in a folder."""

    location: Path
    display_name: str
    id: uuid.UUID = field(default_factory=uuid.uuid4, compare=False)

    @classmethod
    def from_path(cls, path: Path) -> ImageRecord:
        return cls(location=path, display_name=path.name)


@dataclass(frozen=True)
class Configuration:
    """
    Persisted slideshow settings.

    Instances are never mutated: use `dataclasses.replace` to derive a new one.
    The transition interval is clamped on construction so every instance,
    including the ones built by `replace`, stays in range.
    """

    transition_interval: float = DEFAULT_TRANSITION_INTERVAL
    transition_style: TransitionStyle = TransitionStyle.NONE
    last_folder: str | None = None
    starred_only: bool = False
    show_metadata: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "transition_interval", clamp_interval(self.transition_interval))
        if not isinstance(self.transition_style, TransitionStyle):
            object.__setattr__(self, "transition_style", TransitionStyle(self.transition_style))


@dataclass(frozen=True)
class ImageMetadata:
    """EXIF metadata extracted from an image. Every field is optional."""

    camera_make: str | None = None
    camera_model: str | None = None
    lens_model: str | None = None
    iso: int | None = None
    aperture: float | None = None
    shutter_speed: str | None = None
    exposure_mode: str | None = None
    date_taken: datetime.datetime | None = None
    focal_length: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    image_width: int | None = None
    image_height: int | None = None
    orientation: int | None = None

    @property
    def has_data(self) -> bool:
        return any(getattr(self, f.name) is not None for f in fields(self))
