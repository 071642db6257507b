"""
Main window of picshow.

This module defines `SlideshowWindow`, the thin Tkinter client of the
`SlideshowController`. It owns the canvas, forwards user input to the
controller (see `picshow.controls`) and redraws whenever the controller
reports a change. It holds no slideshow state of its own beyond window
preferences such as fullscreen.
"""

from __future__ import annotations

import logging
import tkinter as tk
from pathlib import Path

from PIL import Image, ImageTk

from . import controls, display, hud
from .controller import SlideshowController

logger = logging.getLogger(__name__)

WINDOW_TITLE = "picshow"
RESIZE_DEBOUNCE_MS = 250


class SlideshowWindow:
    """
    Renders a `SlideshowController` on a Tk canvas.

    Args:
        window: The Tk root window. It also drives the controller's scheduling.
        controller: The controller to render and to send commands to.
        fullscreen: Start in fullscreen mode.
    """

    def __init__(self, window: tk.Tk, controller: SlideshowController, fullscreen: bool = False):
        self.window = window
        self.controller = controller

        # Display state
        self.is_fullscreen = fullscreen
        self.always_on_top = False
        self.show_full_hud = False
        self._photo_ref: ImageTk.PhotoImage | tk.PhotoImage | None = None
        self._rendered_image: Image.Image | None = None
        self._resize_job: str | None = None

        # UI Elements
        self.canvas = tk.Canvas(self.window, bg='black', highlightthickness=0)
        self.canvas.pack(fill=tk.BOTH, expand=True)

        self.setup()

    def setup(self) -> None:
        """Configure the window, bind controls and subscribe to the controller."""
        self.window.title(WINDOW_TITLE)
        self.window.geometry("1200x800")
        self.window.attributes('-fullscreen', self.is_fullscreen)
        self.window.protocol("WM_DELETE_WINDOW", self.quit)

        controls.bind_controls(self)
        self._unsubscribe = self.controller.subscribe(self.on_state_changed)
        self.render()

    def on_state_changed(self, controller: SlideshowController, changed: frozenset) -> None:
        if "folder" in changed:
            self.update_title()
        self.render(redraw_image="current_image" in changed or "images" in changed)

    def update_title(self) -> None:
        folder = self.controller.folder
        if folder is not None and self.controller.all_images:
            self.window.title(f"{WINDOW_TITLE} - {Path(folder).name}")
        else:
            self.window.title(WINDOW_TITLE)

    def render(self, redraw_image: bool = True) -> None:
        """
        Redraw the canvas from the controller's state.

        The image itself is only re-rendered when it changed or the canvas was
        resized; HUD and overlay are cheap and always redrawn.
        """
        canvas_width = self.canvas.winfo_width()
        canvas_height = self.canvas.winfo_height()
        if canvas_width <= 1 or canvas_height <= 1:
            # Window not mapped yet; try again once it has a size.
            self.window.after(100, self.render)
            return

        image = self.controller.current_image
        if redraw_image or image is not self._rendered_image:
            if image is None:
                self._photo_ref = None
                display.show_placeholder(self.canvas, self._placeholder_text())
            else:
                self._photo_ref = display.render_image(self.canvas, image)
            self._rendered_image = image

        hud.update_metadata_overlay(self.canvas, self.controller)
        hud.update_hud(self.canvas, self.controller, self.show_full_hud)

    def _placeholder_text(self) -> str:
        if not self.controller.all_images:
            return "Press o to open a folder of images"
        if not self.controller.images:
            return "No starred images (press v to show all)"
        return ""

    def on_resize(self, event: tk.Event) -> None:
        """
        Handle the window resize event.

        To avoid excessive updates during resizing, it schedules the image
        to be re-rendered after a short delay once resizing has stopped.
        """
        if event.widget == self.window:
            if self._resize_job:
                self.window.after_cancel(self._resize_job)
            if event.width > 50 and event.height > 50:
                self._resize_job = self.window.after(RESIZE_DEBOUNCE_MS, self.render)

    def quit(self) -> None:
        """Cleanly shut down the application."""
        logger.info("Quit command received. Closing.")
        if self._resize_job:
            self.window.after_cancel(self._resize_job)
        self._unsubscribe()
        self.controller.close()
        self.window.destroy()

    def run(self) -> None:
        """Start the Tkinter main loop."""
        self.window.mainloop()
