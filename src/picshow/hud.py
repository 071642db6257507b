"""
Heads-Up Display (HUD) Module.

This module is responsible for rendering the on-screen display that shows
slideshow status, the last error, keyboard shortcuts and the EXIF overlay.
Text is built by pure functions from the controller's state so it can be
tested without a window; drawing is a thin layer on top.
"""

from __future__ import annotations

import logging
import tkinter as tk
from typing import TYPE_CHECKING

from . import exif_utils
from .models import PlaybackState

if TYPE_CHECKING:
    from .controller import SlideshowController

# Get a logger instance for this module
logger = logging.getLogger(__name__)

MAX_NAME_LEN_HUD = 40
MIN_CANVAS_WIDTH_FOR_HUD = 200
MIN_CANVAS_HEIGHT_FOR_HUD = 60
HUD_FONT = ("Helvetica", 10, "bold")

STATE_LABELS = {
    PlaybackState.IDLE: "Stopped",
    PlaybackState.PLAYING: "Playing",
    PlaybackState.PAUSED: "Paused",
}


def get_hud_shortcut_text() -> str:
    """
    Generates the help text string containing keyboard shortcuts.

    Returns:
        str: A formatted string listing the available keyboard shortcuts.
    """
    shortcuts = [
        "Shortcuts (h to toggle):",
        "  Play/Pause: Space | Next/Prev: →/←, Scroll | Open folder: o",
        "  Star: s | Unstar: u | Starred only: v | EXIF: e",
        "  Slower/Faster: =,+/- | Transition: t | Fullscreen: f | Always on Top: w | Quit: q, Esc",
    ]
    return "\n".join(shortcuts)


def shorten(name: str, limit: int = MAX_NAME_LEN_HUD) -> str:
    if len(name) > limit:
        return name[:limit - 3] + "..."
    return name


def build_status_lines(controller: 'SlideshowController') -> list[str]:
    """
    Build the status lines of the HUD.

    Args:
        controller (SlideshowController): Source of the state to show.

    Returns:
        list[str]: Position line, settings line and, when set, the error line.
    """
    config = controller.configuration
    status = STATE_LABELS[controller.state]

    if controller.images:
        record = controller.current_record
        position = f"{controller.current_index + 1}/{len(controller.images)}"
        if controller.is_current_starred:
            position += " ★"
        position += f" - {shorten(record.display_name)}"
    elif controller.all_images:
        position = "No images to show"
    else:
        position = "No folder loaded (o to open)"

    settings = [
        f"Delay: {config.transition_interval:.0f}s",
        f"Transition: {config.transition_style.value}",
        f"Starred only: {'On' if config.starred_only else 'Off'}",
    ]

    lines = [f"{status} | {position}", " | ".join(settings)]
    if controller.last_error:
        lines.append(f"⚠ {controller.last_error}")
    return lines


def build_metadata_text(controller: 'SlideshowController') -> str:
    """Text of the EXIF overlay, or an empty string when it should be hidden."""
    record = controller.current_record
    if (
        record is None
        or not controller.configuration.show_metadata
        or controller.state is PlaybackState.PLAYING
    ):
        return ""
    details = exif_utils.get_formatted_exif_data(controller.current_metadata)
    return f"{record.display_name}\n{details or 'No EXIF data'}"


def update_hud(canvas: tk.Canvas, controller: 'SlideshowController', show_shortcuts: bool) -> None:
    """
    Updates and redraws the Heads-Up Display (HUD) on the canvas.

    Args:
        canvas (tk.Canvas): The canvas to draw on.
        controller (SlideshowController): The state to display.
        show_shortcuts (bool): Whether to append the keyboard shortcut help.
    """
    # Clear previous HUD elements to prevent overlap
    canvas.delete("hud_bg", "hud_text")

    canvas_width = canvas.winfo_width()
    canvas_height = canvas.winfo_height()
    if canvas_width < MIN_CANVAS_WIDTH_FOR_HUD or canvas_height < MIN_CANVAS_HEIGHT_FOR_HUD:
        logger.debug(f"Canvas too small ({canvas_width}x{canvas_height}) to draw HUD.")
        return

    hud_lines = build_status_lines(controller)
    if show_shortcuts:
        hud_lines.append(get_hud_shortcut_text())
    final_hud_text = "\n".join(hud_lines)

    padding = 8

    # Use a temporary text object to measure the required bounding box
    temp_text_item = canvas.create_text(0, 0, text=final_hud_text, font=HUD_FONT, anchor='sw', tags="temp")
    x1, y1, x2, y2 = canvas.bbox(temp_text_item)
    canvas.delete(temp_text_item)

    text_width = x2 - x1
    text_height = y2 - y1

    # Position the background rectangle at the bottom-center of the canvas
    rect_x1 = (canvas_width - text_width) / 2 - padding
    rect_y1 = canvas_height - text_height - (2 * padding)
    rect_x2 = (canvas_width + text_width) / 2 + padding
    rect_y2 = canvas_height

    canvas.create_rectangle(
        rect_x1, rect_y1, rect_x2, rect_y2,
        fill="black", outline="", stipple="gray50", tags="hud_bg"
    )
    canvas.create_text(
        rect_x1 + padding,
        rect_y2 - padding,
        text=final_hud_text,
        anchor='sw',
        fill="white",
        font=HUD_FONT,
        tags="hud_text"
    )


def update_metadata_overlay(canvas: tk.Canvas, controller: 'SlideshowController') -> None:
    """Draw (or clear) the EXIF overlay in the top-left corner."""
    canvas.delete("info_text")
    text = build_metadata_text(controller)
    if not text:
        return
    canvas.create_text(
        10,
        10,
        text=text,
        fill="white",
        font=("Helvetica", 10),
        anchor="nw",
        tags="info_text",
    )
