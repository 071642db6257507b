"""
User Input and Event Handling Module.

This module binds keyboard shortcuts and mouse events to controller commands.
Handlers never change slideshow state directly; window-only concerns
(fullscreen, always-on-top, the help text) are the exception.
"""

from __future__ import annotations

import logging
import tkinter as tk
from tkinter import filedialog
from typing import TYPE_CHECKING

from .config import INTERVAL_STEP

if TYPE_CHECKING:
    from .app import SlideshowWindow

logger = logging.getLogger(__name__)


def bind_controls(view: 'SlideshowWindow'):
    """
    Binds all keyboard shortcuts and mouse events to their handler functions.

    Args:
        view (SlideshowWindow): The window whose controller receives the commands.
    """
    window = view.window
    controller = view.controller

    # Playback and Navigation
    window.bind('<space>', lambda e: controller.toggle_playback())
    window.bind('<Right>', lambda e: controller.advance_next())
    window.bind('<Left>', lambda e: controller.advance_previous())
    window.bind('<MouseWheel>', lambda e: on_scroll(view, e))
    window.bind('<Button-4>', lambda e: on_scroll(view, e))
    window.bind('<Button-5>', lambda e: on_scroll(view, e))
    window.bind('<Button-1>', lambda e: on_click(view, e))

    # Folder and starring
    window.bind('o', lambda e: open_folder(view))
    window.bind('s', lambda e: controller.toggle_star_current())
    window.bind('u', lambda e: controller.unstar_current())
    window.bind('v', lambda e: controller.toggle_starred_only_filter())
    window.bind('e', lambda e: controller.toggle_metadata_overlay())

    # Slideshow Parameters
    window.bind('=', lambda e: controller.adjust_interval(INTERVAL_STEP))
    window.bind('+', lambda e: controller.adjust_interval(INTERVAL_STEP))
    window.bind('-', lambda e: controller.adjust_interval(-INTERVAL_STEP))
    window.bind('t', lambda e: controller.cycle_transition_style())

    # Display and Window Management
    window.bind('f', lambda e: toggle_fullscreen(view))
    window.bind('F', lambda e: toggle_fullscreen(view))
    window.bind('w', lambda e: toggle_always_on_top(view))
    window.bind('h', lambda e: toggle_show_full_hud(view))

    # Application Control
    window.bind('q', lambda e: view.quit())
    window.bind('Q', lambda e: view.quit())
    window.bind('<Escape>', lambda e: view.quit())

    # Window Resize Event
    window.bind('<Configure>', view.on_resize)


def on_scroll(view: 'SlideshowWindow', event: tk.Event):
    if event.delta > 0 or event.num == 4:
        view.controller.advance_previous()
    elif event.delta < 0 or event.num == 5:
        view.controller.advance_next()


def on_click(view: 'SlideshowWindow', event: tk.Event):
    # Clicks on the HUD area should not toggle playback
    if event.y < view.canvas.winfo_height() - 100:
        view.controller.toggle_playback()


def open_folder(view: 'SlideshowWindow'):
    initial = view.controller.configuration.last_folder
    folder = filedialog.askdirectory(
        parent=view.window,
        title="Select a folder containing images",
        initialdir=initial or None,
        mustexist=True,
    )
    if folder:
        logger.info(f"Folder selected: {folder}")
        view.controller.load_folder(folder)


def toggle_fullscreen(view: 'SlideshowWindow'):
    view.is_fullscreen = not view.is_fullscreen
    view.window.attributes('-fullscreen', view.is_fullscreen)
    logger.info(f"Fullscreen mode {'enabled' if view.is_fullscreen else 'disabled'}.")


def toggle_always_on_top(view: 'SlideshowWindow'):
    view.always_on_top = not view.always_on_top
    view.window.attributes('-topmost', view.always_on_top)
    logger.info(f"Always on top {'enabled' if view.always_on_top else 'disabled'}.")


def toggle_show_full_hud(view: 'SlideshowWindow'):
    view.show_full_hud = not view.show_full_hud
    logger.info(f"Full HUD display {'enabled' if view.show_full_hud else 'disabled'}.")
    view.render()
