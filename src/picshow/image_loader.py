"""
Image discovery and decoding.

This module is responsible for discovering image files in a directory,
ordering them the way a file browser would (natural, case-insensitive order)
and decoding a single file into an RGB Pillow image ready for display.
"""

from __future__ import annotations

import locale
import logging
import os
import re
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .config import SUPPORTED_IMAGE_EXTENSIONS
from .exceptions.slideshow_errors import FolderAccessError, ImageDecodeError
from .models import ImageRecord

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r'(\d+)')


def natural_sort_key(name: str) -> list:
    """
    Build a sort key that orders names naturally.

    Digit runs compare as numbers, so 'image2' sorts before 'image10'. Text runs
    are case-folded and transformed with the current locale's collation rules.
    `re.split` with a capturing group always puts text at even positions and
    numbers at odd positions, so two keys never compare a str with an int.

    Args:
        name: The display name to build a key for.

    Returns:
        A list usable as a `sorted` key.
    """
    parts = _DIGITS.split(name)
    return [int(part) if i % 2 else locale.strxfrm(part.casefold()) for i, part in enumerate(parts)]


def supported_formats_text() -> str:
    """Human readable list of supported extensions, e.g. 'png, jpg, ...'."""
    return ", ".join(ext.lstrip('.') for ext in SUPPORTED_IMAGE_EXTENSIONS)


def load_images_from_folder(image_folder: Path) -> list[ImageRecord]:
    """
    Scan a directory (not its subdirectories) for supported image files.

    Args:
        image_folder: The directory path to scan for images.

    Returns:
        The images found, in natural order of their file names. An empty list
        when the folder holds no supported images.

    Raises:
        FolderAccessError: If the folder does not exist, is not a directory or
                           cannot be listed.
    """
    image_folder = Path(os.path.normpath(os.path.abspath(image_folder)))
    if not image_folder.is_dir():
        logger.error(f"The specified image folder '{image_folder}' does not exist or is not a directory.")
        raise FolderAccessError(f"'{image_folder}' does not exist or is not a directory")

    logger.info(f"Scanning for images in: {image_folder}")

    try:
        raw_image_list = [
            item for item in image_folder.iterdir()
            if item.is_file() and
               item.name.lower().endswith(SUPPORTED_IMAGE_EXTENSIONS) and
               not item.name.startswith('.')
        ]
    except OSError as e:
        logger.error(f"Cannot read image folder '{image_folder}': {e}")
        raise FolderAccessError(f"cannot read '{image_folder}': {e.strerror or e}") from e

    if not raw_image_list:
        logger.warning(f"No images found in '{image_folder}' with supported extensions.")
        return []

    sorted_images = sorted(raw_image_list, key=lambda p: natural_sort_key(p.name))
    logger.info(f"Found {len(sorted_images)} images.")
    return [ImageRecord.from_path(path) for path in sorted_images]


def to_rgb(image: Image.Image) -> Image.Image:
    """
    Convert an image to RGB, flattening transparency onto a white background.

    RGB is the most reliable mode for all subsequent operations including ImageTk.
    """
    if image.mode == 'RGB':
        return image
    logger.debug(f"Converting image from mode '{image.mode}' to 'RGB' for maximum compatibility.")
    if image.mode in ('RGBA', 'LA') or 'transparency' in image.info:
        background = Image.new('RGB', image.size, (255, 255, 255))
        if image.mode == 'P':
            image = image.convert('RGBA')
        background.paste(image, mask=image.split()[-1] if image.mode in ('RGBA', 'LA') else None)
        return background
    return image.convert('RGB')


def decode_image(location: Path) -> Image.Image:
    """
    Open and fully decode an image file.

    Args:
        location: Path of the image file.

    Returns:
        The decoded image in RGB mode.

    Raises:
        ImageDecodeError: If the file is missing or is not a readable image.
    """
    try:
        with Image.open(location) as opened:
            opened.load()  # Force loading image data into memory
            image = to_rgb(opened)
            if image is opened:
                image = opened.copy()
    except (FileNotFoundError, UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"Error decoding image '{location.name}': {e}")
        raise ImageDecodeError(location.name, str(e)) from e
    logger.debug(f"Decoded '{location.name}' ({image.width}x{image.height})")
    return image


class FolderImageSource:
    """File-system backed image source used by the application."""

    def enumerate(self, folder: Path) -> list[ImageRecord]:
        return load_images_from_folder(Path(folder))

    def decode(self, location: Path) -> Image.Image:
        return decode_image(Path(location))
