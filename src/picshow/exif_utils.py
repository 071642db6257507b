"""
EXIF Data Extraction and Formatting Utilities.

This module provides functions to extract, interpret, and format EXIF (Exchangeable
Image File Format) data from image files. It uses the Pillow library to access
the metadata embedded in images by digital cameras. Extraction is best effort:
any failure is logged and reported as "no data", never raised.
"""

import datetime
import logging
import math
from pathlib import Path

from PIL import Image
from PIL.ExifTags import GPSTAGS, IFD, TAGS

from .models import ImageMetadata

# Get a logger instance for this module
logger = logging.getLogger(__name__)

EXPOSURE_MODES = {0: "Auto", 1: "Manual", 2: "Auto Bracket"}


def format_shutter_speed(exposure_time) -> str | None:
    """Format an exposure time in seconds, e.g. 0.0166 -> '1/60s', 2.0 -> '2.0s'."""
    if exposure_time is None:
        return None
    exposure_time = float(exposure_time)
    if not math.isfinite(exposure_time) or exposure_time <= 0:
        return None
    if exposure_time >= 1.0:
        return f"{exposure_time:.1f}s"
    return f"1/{int(round(1 / exposure_time))}s"


def format_exposure_mode(mode) -> str | None:
    if mode is None:
        return None
    return EXPOSURE_MODES.get(int(mode), "Unknown")


def parse_exif_date(value) -> datetime.datetime | None:
    if not value:
        return None
    try:
        return datetime.datetime.strptime(str(value).strip('\x00 '), '%Y:%m:%d %H:%M:%S')
    except (ValueError, TypeError):
        logger.debug(f"Unparseable EXIF date: {value!r}")
        return None


def _dms_to_degrees(dms, ref) -> float | None:
    try:
        degrees, minutes, seconds = (float(v) for v in dms)
    except (TypeError, ValueError):
        return None
    value = degrees + minutes / 60 + seconds / 3600
    return -value if ref in ('S', 'W') else value


def _as_float(value) -> float | None:
    # Rationals with a zero denominator come back as NaN.
    try:
        number = float(value) if value is not None else None
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return number if number is not None and math.isfinite(number) else None


def _as_int(value) -> int | None:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='replace')
    text = str(value).strip('\x00 ')
    return text or None


def extract_metadata(image_path: Path) -> ImageMetadata | None:
    """
    Extracts key EXIF data from an image file.

    Args:
        image_path (Path): The path to the image file.

    Returns:
        ImageMetadata | None: The extracted metadata, or None if the file is
                              missing, unreadable or carries no metadata.
    """
    if not image_path.exists():
        logger.warning(f"Cannot get EXIF data: file not found at {image_path}")
        return None

    try:
        with Image.open(image_path) as img:
            exif = img.getexif()
            width, height = img.size

            # Map tag IDs to human-readable names, merging the Exif sub-IFD
            exif_info = {TAGS.get(tag_id, tag_id): value for tag_id, value in exif.items()}
            exif_info.update(
                {TAGS.get(tag_id, tag_id): value for tag_id, value in exif.get_ifd(IFD.Exif).items()}
            )
            gps_info = {GPSTAGS.get(tag_id, tag_id): value for tag_id, value in exif.get_ifd(IFD.GPSInfo).items()}
    except Exception as e:
        logger.error(f"Error reading EXIF data for '{image_path.name}': {e}")
        return None

    if not exif_info and not gps_info:
        logger.debug(f"No EXIF data found for image: {image_path.name}")

    latitude = longitude = None
    if 'GPSLatitude' in gps_info:
        latitude = _dms_to_degrees(gps_info['GPSLatitude'], gps_info.get('GPSLatitudeRef'))
    if 'GPSLongitude' in gps_info:
        longitude = _dms_to_degrees(gps_info['GPSLongitude'], gps_info.get('GPSLongitudeRef'))

    return ImageMetadata(
        camera_make=_as_text(exif_info.get('Make')),
        camera_model=_as_text(exif_info.get('Model')),
        lens_model=_as_text(exif_info.get('LensModel')),
        iso=_as_int(exif_info.get('ISOSpeedRatings')),
        aperture=_as_float(exif_info.get('FNumber')),
        shutter_speed=format_shutter_speed(_as_float(exif_info.get('ExposureTime'))),
        exposure_mode=format_exposure_mode(_as_int(exif_info.get('ExposureMode'))),
        date_taken=parse_exif_date(exif_info.get('DateTimeOriginal') or exif_info.get('DateTime')),
        focal_length=_as_float(exif_info.get('FocalLength')),
        latitude=latitude,
        longitude=longitude,
        image_width=width,
        image_height=height,
        orientation=_as_int(exif_info.get('Orientation')),
    )


def get_formatted_exif_data(metadata: ImageMetadata | None) -> str:
    """
    Formats extracted metadata into a multi-line string for the overlay.

    Args:
        metadata (ImageMetadata | None): Metadata returned by `extract_metadata`.

    Returns:
        str: One line per available field group, or an empty string.
    """
    if metadata is None or not metadata.has_data:
        return ""

    formatted_lines = []

    camera = " ".join(filter(None, [metadata.camera_make, metadata.camera_model]))
    if camera:
        formatted_lines.append(f"Camera: {camera}")
    if metadata.lens_model:
        formatted_lines.append(f"Lens: {metadata.lens_model}")

    exposure_str = ""
    if metadata.shutter_speed:
        exposure_str += metadata.shutter_speed
    if metadata.aperture:
        exposure_str += f"  f/{metadata.aperture:g}"
    if metadata.iso:
        exposure_str += f"  ISO {metadata.iso}"
    if exposure_str:
        formatted_lines.append(f"Exposure: {exposure_str.strip()}")
    if metadata.exposure_mode:
        formatted_lines.append(f"Mode: {metadata.exposure_mode}")
    if metadata.focal_length:
        formatted_lines.append(f"Focal length: {metadata.focal_length:g}mm")

    if metadata.date_taken:
        formatted_lines.append(f"Date: {metadata.date_taken.strftime('%Y-%m-%d %H:%M:%S')}")

    if metadata.latitude is not None and metadata.longitude is not None:
        formatted_lines.append(f"GPS: {metadata.latitude:.5f}, {metadata.longitude:.5f}")

    if metadata.image_width and metadata.image_height:
        formatted_lines.append(f"Size: {metadata.image_width}x{metadata.image_height}")

    return "\n".join(formatted_lines)


class ExifMetadataSource:
    """Metadata source backed by Pillow's EXIF reader."""

    def extract(self, location: Path) -> ImageMetadata | None:
        return extract_metadata(Path(location))
