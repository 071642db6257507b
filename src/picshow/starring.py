"""
Manages the "starred" images of a folder.

Starred images are stored in a text file within the image directory, one file
name per line, relative to that directory. Keeping the list inside the folder
means it travels with the photos when the folder is moved or synced.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import STARRED_FILENAME

# Get a logger instance for this module
logger = logging.getLogger(__name__)


def _normalize(folder: Path) -> Path:
    return Path(os.path.normpath(os.path.abspath(folder)))


def load_starred(image_folder: Path) -> set[str]:
    """
    Loads the starred entries from the starred file in the image folder.

    Args:
        image_folder (Path): The directory where images are located and where
                             the starred file is expected to be.

    Returns:
        set[str]: File names (relative to the folder) that are starred. Empty
                  if the file doesn't exist or cannot be read.
    """
    starred_file = image_folder / STARRED_FILENAME
    if not starred_file.exists():
        logger.debug(f"Starred file not found: {starred_file}. No starred images to load.")
        return set()

    try:
        with open(starred_file, 'r', encoding='utf-8') as f:
            entries = {line.strip() for line in f if line.strip()}
        logger.debug(f"Loaded {len(entries)} starred entries from {starred_file}.")
        return entries
    except OSError as e:
        logger.error(f"Error loading starred images from '{starred_file}': {e}")
    except UnicodeDecodeError:
        logger.error(f"Error parsing starred entries from '{starred_file}'. File might be corrupt.")

    return set()


def save_starred(image_folder: Path, entries: set[str]) -> None:
    """
    Saves the starred entries to the starred file, sorted for stable diffs.

    An empty set removes the file instead of leaving an empty one behind.

    Args:
        image_folder (Path): The directory where the starred file will be saved.
        entries (set[str]): File names relative to the folder.
    """
    starred_file = image_folder / STARRED_FILENAME
    try:
        if not entries:
            starred_file.unlink(missing_ok=True)
            logger.info(f"No starred images left, removed {starred_file}.")
            return
        with open(starred_file, 'w', encoding='utf-8') as f:
            for entry in sorted(entries):
                f.write(f"{entry}\n")
        logger.info(f"Saved {len(entries)} starred entries to {starred_file}.")
    except OSError as e:
        logger.error(f"Error saving starred images to '{starred_file}': {e}")


class FileStarStore:
    """Star store keeping one `starred.txt` per image folder."""

    def _entry(self, location: Path, folder: Path) -> str:
        location = _normalize(location)
        try:
            return location.relative_to(folder).as_posix()
        except ValueError:
            # Not inside the folder: keep the absolute path so it still round-trips.
            return str(location)

    def is_starred(self, location: Path, folder: Path) -> bool:
        folder = _normalize(folder)
        return self._entry(location, folder) in load_starred(folder)

    def set_starred(self, location: Path, folder: Path, starred: bool) -> None:
        folder = _normalize(folder)
        entries = load_starred(folder)
        entry = self._entry(location, folder)
        if starred:
            entries.add(entry)
            logger.info(f"Image '{entry}' starred.")
        else:
            entries.discard(entry)
            logger.info(f"Image '{entry}' unstarred.")
        save_starred(folder, entries)

    def starred_set(self, folder: Path) -> set[Path]:
        folder = _normalize(folder)
        return {_normalize(folder / entry) for entry in load_starred(folder)}
