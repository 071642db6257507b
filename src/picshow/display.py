"""
Image Display Module.

This module handles tasks related to rendering the controller's current image
on the Tkinter canvas: fitting it to the canvas, robustly creating PhotoImage
objects and drawing placeholder text when there is nothing to show.
"""

import base64
import io
import logging
import tkinter as tk
from typing import cast

from PIL import Image, ImageTk

logger = logging.getLogger(__name__)

IMAGE_TAG = "image"
PLACEHOLDER_TAG = "placeholder"


def fit_size(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """
    Compute the largest size with the same aspect ratio that fits the bounds.

    Args:
        width, height: Size of the source image.
        max_width, max_height: Size of the area to fit into.

    Returns:
        (width, height) of the fitted image, at least 1x1. The source size is
        returned unchanged when either size is not positive.
    """
    if max_width <= 0 or max_height <= 0:
        logger.warning(f"fit_size: Invalid target dimensions ({max_width}x{max_height}).")
        return width, height
    if width <= 0 or height <= 0:
        logger.warning(f"fit_size: Invalid original image dimensions ({width}x{height}).")
        return width, height

    scale = min(max_width / width, max_height / height)
    return max(1, int(width * scale)), max(1, int(height * scale))


def resize_image(image: Image.Image, target_width: int, target_height: int) -> Image.Image:
    """
    Resizes a PIL Image to fit within target dimensions while maintaining aspect ratio.

    Returns a copy of the original when the dimensions are invalid or resizing fails.
    """
    new_size = fit_size(image.width, image.height, target_width, target_height)
    if new_size == image.size or new_size[0] <= 0 or new_size[1] <= 0:
        return image.copy()
    try:
        return image.resize(new_size, Image.Resampling.LANCZOS)
    except (ValueError, OSError) as e:
        logger.error(f"Error during image resize: {e}")
        return image.copy()


def create_photoimage(image: Image.Image) -> tk.PhotoImage | None:
    """
    Creates a tk.PhotoImage from an RGB PIL Image.

    `ImageTk.PhotoImage` is tried first. Some Tk builds reject it, in which case
    the image is handed to Tk as base64 PNG data instead.

    Returns:
        tk.PhotoImage | None: The created PhotoImage, or None if both methods fail.
    """
    if image.width <= 0 or image.height <= 0:
        logger.error(f"Invalid image dimensions: {image.width}x{image.height}")
        return None

    try:
        return cast(tk.PhotoImage, ImageTk.PhotoImage(image))
    except (tk.TclError, RuntimeError, ValueError) as e:
        logger.warning(f"ImageTk.PhotoImage failed: {e}. Trying PNG data fallback.")

    try:
        with io.BytesIO() as buffer:
            image.save(buffer, format='PNG')
            return tk.PhotoImage(data=base64.b64encode(buffer.getvalue()))
    except (tk.TclError, OSError) as e:
        logger.error(f"All PhotoImage creation methods failed. Last error: {e}")
        return None


def render_image(canvas: tk.Canvas, image: Image.Image) -> tk.PhotoImage | None:
    """
    Fits ``image`` to the canvas and draws it centred.

    Returns:
        tk.PhotoImage | None: Reference to keep alive (Tk does not hold one), or
                              None when the image could not be converted.
    """
    width, height = canvas.winfo_width(), canvas.winfo_height()
    photo = create_photoimage(resize_image(image, width, height))
    canvas.delete(IMAGE_TAG, PLACEHOLDER_TAG)
    if photo:
        canvas.create_image(width // 2, height // 2, image=photo, anchor=tk.CENTER, tags=IMAGE_TAG)
    else:
        logger.error("Failed to create PhotoImage for display.")
        show_placeholder(canvas, "Error displaying image", fill="red")
    return photo


def show_placeholder(canvas: tk.Canvas, text: str, fill: str = "gray70") -> None:
    """Replace the image with a centred line of text."""
    canvas.delete(IMAGE_TAG, PLACEHOLDER_TAG)
    canvas.create_text(
        canvas.winfo_width() // 2, canvas.winfo_height() // 2,
        text=text, fill=fill, font=("Helvetica", 16), tags=PLACEHOLDER_TAG,
    )
