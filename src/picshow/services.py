"""
Collaborator interfaces consumed by the slideshow controller.

The controller never touches the file system directly. It talks to these
protocols so that tests can inject simple fakes and the production wiring in
`picshow.cli` can plug in the file-based implementations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from PIL import Image

from .models import Configuration, ImageMetadata, ImageRecord


class ImageSource(Protocol):
    """Enumerates folders and decodes images."""

    def enumerate(self, folder: Path) -> list[ImageRecord]:  # pragma: no cover - protocol
        """Return the supported images of ``folder``. Raises `FolderAccessError`."""

    def decode(self, location: Path) -> Image.Image:  # pragma: no cover - protocol
        """Return the decoded image. Raises `ImageDecodeError`."""


class ConfigStore(Protocol):
    """Loads and saves the `Configuration` record."""

    def load(self) -> Configuration:  # pragma: no cover - protocol
        """Return the saved configuration, or defaults when nothing was saved."""

    def save(self, configuration: Configuration) -> None:  # pragma: no cover - protocol
        """Persist ``configuration``. Raises `ConfigurationSaveError`."""


class StarStore(Protocol):
    """Per-folder set of starred image locations."""

    def is_starred(self, location: Path, folder: Path) -> bool:  # pragma: no cover - protocol
        ...

    def set_starred(self, location: Path, folder: Path, starred: bool) -> None:  # pragma: no cover - protocol
        ...

    def starred_set(self, folder: Path) -> set[Path]:  # pragma: no cover - protocol
        ...


class MetadataSource(Protocol):
    """Best-effort EXIF reader. Never raises; ``None`` means no data."""

    def extract(self, location: Path) -> ImageMetadata | None:  # pragma: no cover - protocol
        ...
