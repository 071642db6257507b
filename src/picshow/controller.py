"""
Playback and navigation state machine for picshow.

`SlideshowController` owns the loaded image sequence, the position in it, the
playback state, the active configuration and a single error/status message.
Views never change that state themselves: they call the controller's commands
and re-render whenever it notifies its subscribers.

All commands run on the Tk main thread and return immediately. Folder scans,
image decoding and EXIF reads go through a `TaskDispatcher`; their outcome is
applied when the dispatcher hands the result back to the Tk thread.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any, Callable

from PIL import Image

from .config import INTERVAL_STEP
from .exceptions.slideshow_errors import ConfigurationSaveError, ImageDecodeError
from .image_loader import natural_sort_key, supported_formats_text
from .models import Configuration, ImageMetadata, ImageRecord, PlaybackState, TransitionStyle
from .scheduling import RepeatingTimer, Scheduler, TaskDispatcher
from .services import ConfigStore, ImageSource, MetadataSource, StarStore

logger = logging.getLogger(__name__)

Subscriber = Callable[["SlideshowController", frozenset], None]

ENUMERATE_CHANNEL = "enumerate"
DECODE_CHANNEL = "decode"
METADATA_CHANNEL = "metadata"

NO_STARRED_FOUND = "No starred images found in this folder"
NO_STARRED_REMAINING = "No starred images remaining"
ALL_IMAGES_FAILED = "Unable to load any images. Stopping playback."


def _failed_image_message(record: ImageRecord) -> str:
    return f"Failed to load image: {record.display_name}"


class SlideshowController:
    """
    Central state manager of the slideshow.

    Parameters
    ----------
    window:
        Tk widget whose ``after``/``after_cancel`` drive the playback timer
        and the delivery of background results.
    image_source:
        Enumerates folders and decodes images.
    config_store:
        Loads the configuration once at construction and saves every change.
    star_store:
        Per-folder starred set.
    metadata_source:
        Optional EXIF reader used by the metadata overlay.
    dispatcher:
        Optional `TaskDispatcher`; one bound to ``window`` is created when omitted.
    """

    def __init__(
        self,
        window: Scheduler,
        image_source: ImageSource,
        config_store: ConfigStore,
        star_store: StarStore,
        metadata_source: MetadataSource | None = None,
        *,
        dispatcher: TaskDispatcher | None = None,
    ) -> None:
        self._image_source = image_source
        self._config_store = config_store
        self._star_store = star_store
        self._metadata_source = metadata_source
        self._dispatcher = dispatcher or TaskDispatcher(window)
        self._timer = RepeatingTimer(window, self._on_timer_tick)
        self._subscribers: list[Subscriber] = []

        # Navigation context
        self.folder: Path | None = None
        self.all_images: list[ImageRecord] = []
        self.images: list[ImageRecord] = []
        self._current_index = 0
        self.current_image: Image.Image | None = None
        self.current_metadata: ImageMetadata | None = None
        self.last_error: str | None = None

        self.state = PlaybackState.IDLE
        self.configuration: Configuration = self._config_store.load()
        logger.debug(f"Controller created with {self.configuration}")

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback(controller, changed_fields)``. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, *changed: str) -> None:
        fields = frozenset(changed)
        for callback in list(self._subscribers):
            try:
                callback(self, fields)
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed while handling {sorted(fields)}")

    def _set_error(self, message: str | None) -> None:
        if message:
            logger.warning(message)
        self.last_error = message

    # ------------------------------------------------------------------
    # Read-only views of the state
    # ------------------------------------------------------------------
    @property
    def current_index(self) -> int:
        return self._current_index if self.images else 0

    @property
    def current_record(self) -> ImageRecord | None:
        if 0 <= self._current_index < len(self.images):
            return self.images[self._current_index]
        return None

    @property
    def timer_active(self) -> bool:
        return self._timer.active

    @property
    def is_current_starred(self) -> bool:
        record = self.current_record
        if record is None or self.folder is None:
            return False
        return self._star_store.is_starred(record.location, self.folder)

    # ------------------------------------------------------------------
    # Folder loading
    # ------------------------------------------------------------------
    def load_folder(self, location: str | os.PathLike, autoplay: bool = False) -> None:
        """Scan ``location`` in the background and show its first image."""
        folder = Path(os.path.normpath(os.path.abspath(location)))
        logger.info(f"Loading folder: {folder}")
        self._dispatcher.submit(
            ENUMERATE_CHANNEL,
            self._image_source.enumerate,
            folder,
            on_done=lambda records, error: self._on_folder_enumerated(folder, records, error, autoplay),
        )

    def _on_folder_enumerated(
        self,
        folder: Path,
        records: list[ImageRecord] | None,
        error: BaseException | None,
        autoplay: bool,
    ) -> None:
        if error is not None:
            logger.error(f"Failed to enumerate '{folder}': {error}")
            self._set_error(f"Failed to load images from folder: {error}")
            self._publish("last_error")
            return

        if not records:
            self._set_error(
                f"The selected folder contains no supported image formats ({supported_formats_text()})"
            )
            self._publish("last_error")
            return

        self._dispatcher.cancel(DECODE_CHANNEL)
        self._dispatcher.cancel(METADATA_CHANNEL)
        self.folder = folder
        self.all_images = sorted(records, key=lambda record: natural_sort_key(record.display_name))
        self._refresh_visible()
        self._current_index = 0
        self.current_metadata = None
        self._set_error(NO_STARRED_FOUND if self._filtering and not self.images else None)
        logger.info(f"Loaded {len(self.all_images)} images, {len(self.images)} visible.")
        logger.debug(f"State after load: {self.snapshot()}")

        self._remember_folder(folder)

        if self.images:
            self._publish("folder", "images", "current_index", "last_error", "current_metadata")
            self._load_current()
            if autoplay:
                self.start_playback()
        else:
            self.current_image = None
            if self.state is PlaybackState.PLAYING:
                self.stop_playback()
            self._publish("folder", "images", "current_index", "current_image", "last_error", "current_metadata")

    def _remember_folder(self, folder: Path) -> None:
        updated = dataclasses.replace(self.configuration, last_folder=str(folder))
        if updated == self.configuration:
            return
        try:
            self._config_store.save(updated)
        except ConfigurationSaveError as e:
            logger.warning(f"Could not remember last folder '{folder}': {e}")
            return
        self.configuration = updated
        self._publish("configuration")

    # ------------------------------------------------------------------
    # Starred filter
    # ------------------------------------------------------------------
    @property
    def _filtering(self) -> bool:
        return self.configuration.starred_only

    def _refresh_visible(self) -> None:
        """Recompute the visible set from ``all_images``. Never patched in place."""
        if self._filtering and self.folder is not None:
            starred = self._star_store.starred_set(self.folder)
            self.images = [record for record in self.all_images if record.location in starred]
        else:
            self.images = list(self.all_images)

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------
    def start_playback(self) -> None:
        if not self.images:
            logger.debug("start_playback ignored: nothing to show")
            return
        if self.configuration.show_metadata:
            # The overlay only exists while paused or idle.
            self.set_configuration(dataclasses.replace(self.configuration, show_metadata=False))
        self._begin_playing()

    def resume_playback(self) -> None:
        if self.state is not PlaybackState.PAUSED or not self.images:
            return
        if self.configuration.show_metadata:
            self.set_configuration(dataclasses.replace(self.configuration, show_metadata=False))
        self._begin_playing()

    def _begin_playing(self) -> None:
        self.state = PlaybackState.PLAYING
        self.current_metadata = None
        self._timer.start(self.configuration.transition_interval)
        logger.info(f"Playback started ({self.configuration.transition_interval:.0f}s per image)")
        self._publish("state", "current_metadata")

    def pause_playback(self) -> None:
        self._timer.cancel()
        self.state = PlaybackState.PAUSED
        logger.info("Playback paused")
        self._publish("state")
        self._request_metadata()

    def stop_playback(self) -> None:
        self._timer.cancel()
        self.state = PlaybackState.IDLE
        logger.info("Playback stopped")
        self._publish("state")

    def toggle_playback(self) -> None:
        if self.state is PlaybackState.PLAYING:
            self.pause_playback()
        elif self.state is PlaybackState.PAUSED:
            self.resume_playback()
        else:
            self.start_playback()

    def _on_timer_tick(self) -> None:
        if self.state is not PlaybackState.PLAYING:
            logger.debug("Timer fired after playback stopped; ignoring")
            return
        logger.debug("Timer tick")
        self.advance_next()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def advance_next(self) -> None:
        if not self.images:
            return
        self._current_index = (self._current_index + 1) % len(self.images)
        self._navigated()

    def advance_previous(self) -> None:
        if not self.images:
            return
        count = len(self.images)
        self._current_index = (self._current_index - 1 + count) % count
        self._navigated()

    def _navigated(self) -> None:
        self.current_metadata = None
        self._publish("current_index", "current_metadata")
        self._load_current(recover=True)

    # ------------------------------------------------------------------
    # Image loading
    # ------------------------------------------------------------------
    def _load_current(self, recover: bool = False) -> None:
        """
        Decode the image at the current index in the background.

        With ``recover`` set this is the error-recovery load: while playing, a
        failing image is skipped and the next one tried, at most once per
        visible image.
        """
        if not self.images:
            self._dispatcher.cancel(DECODE_CHANNEL)
            self.current_image = None
            self._publish("current_image")
            return
        self._decode_attempt(self._current_index, attempts=1, recover=recover)

    def _decode_attempt(self, index: int, attempts: int, recover: bool) -> None:
        record = self.images[index]
        logger.debug(f"Decoding {index + 1}/{len(self.images)}: '{record.display_name}' (attempt {attempts})")
        self._dispatcher.submit(
            DECODE_CHANNEL,
            self._image_source.decode,
            record.location,
            on_done=lambda image, error: self._on_decoded(record, index, attempts, recover, image, error),
        )

    def _on_decoded(
        self,
        record: ImageRecord,
        index: int,
        attempts: int,
        recover: bool,
        image: Image.Image | None,
        error: BaseException | None,
    ) -> None:
        if index >= len(self.images) or self.images[index] is not record:
            logger.debug(f"Discarding decode of '{record.display_name}': visible set changed")
            return

        if error is None:
            self.current_image = image
            self._set_error(None)
            self._publish("current_image", "last_error")
            self._request_metadata()
            return

        if isinstance(error, ImageDecodeError):
            logger.error(f"Error loading image {record.display_name}: {error}")
        else:
            logger.error(f"Unexpected error loading image {record.display_name}", exc_info=error)
        self._set_error(_failed_image_message(record))

        if not (recover and self.state is PlaybackState.PLAYING):
            # Manual navigation: stay on the failing file, keep the previous image.
            self._publish("last_error")
            return

        if attempts >= len(self.images):
            logger.error("Every visible image failed to load; stopping playback")
            self._set_error(ALL_IMAGES_FAILED)
            self._timer.cancel()
            self.state = PlaybackState.IDLE
            self._publish("last_error", "state")
            return

        self._current_index = (index + 1) % len(self.images)
        self._publish("current_index", "last_error")
        self._decode_attempt(self._current_index, attempts + 1, recover)

    # ------------------------------------------------------------------
    # Metadata overlay
    # ------------------------------------------------------------------
    def _request_metadata(self) -> None:
        record = self.current_record
        if (
            self._metadata_source is None
            or record is None
            or not self.configuration.show_metadata
            or self.state is PlaybackState.PLAYING
        ):
            return
        self._dispatcher.submit(
            METADATA_CHANNEL,
            self._metadata_source.extract,
            record.location,
            on_done=lambda metadata, error: self._on_metadata(record, metadata, error),
        )

    def _on_metadata(self, record: ImageRecord, metadata: ImageMetadata | None, error: BaseException | None) -> None:
        if record is not self.current_record or self.state is PlaybackState.PLAYING:
            return
        if error is not None:
            logger.warning(f"Metadata extraction failed for '{record.display_name}': {error}")
            metadata = None
        self.current_metadata = metadata
        self._publish("current_metadata")

    def toggle_metadata_overlay(self) -> None:
        self.set_configuration(
            dataclasses.replace(self.configuration, show_metadata=not self.configuration.show_metadata)
        )

    # ------------------------------------------------------------------
    # Starring
    # ------------------------------------------------------------------
    def _can_star(self) -> bool:
        return (
            self.state in (PlaybackState.IDLE, PlaybackState.PAUSED)
            and self.current_record is not None
            and self.folder is not None
        )

    def star_current(self) -> None:
        if not self._can_star():
            logger.debug("star_current ignored: playing, nothing loaded or no folder")
            return
        record = self.current_record
        self._star_store.set_starred(record.location, self.folder, True)
        changed = {"starred"}
        if self._filtering:
            self._refresh_visible()
            if self._current_index >= len(self.images):
                self._current_index = 0
            changed |= {"images", "current_index"}
            self._publish(*changed)
            if self.current_record is not record:
                self._load_current()
            return
        self._publish(*changed)

    def unstar_current(self) -> None:
        if not self._can_star():
            logger.debug("unstar_current ignored: playing, nothing loaded or no folder")
            return
        record = self.current_record
        self._star_store.set_starred(record.location, self.folder, False)
        if not self._filtering:
            self._publish("starred")
            return

        previous_index = self._current_index
        self._refresh_visible()
        if not self.images:
            self._dispatcher.cancel(DECODE_CHANNEL)
            self._current_index = 0
            self.current_image = None
            self.current_metadata = None
            self._set_error(NO_STARRED_REMAINING)
            self._publish("starred", "images", "current_index", "current_image", "current_metadata", "last_error")
            return

        self._set_error(None)
        if previous_index >= len(self.images):
            self._current_index = len(self.images) - 1
        self.current_metadata = None
        self._publish("starred", "images", "current_index", "current_metadata", "last_error")
        self._load_current()

    def toggle_star_current(self) -> None:
        if self.is_current_starred:
            self.unstar_current()
        else:
            self.star_current()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_configuration(self, new_config: Configuration) -> bool:
        """
        Replace the whole configuration.

        The new value is saved first. When saving fails nothing changes in
        memory and the error is reported through ``last_error``.

        Returns:
            True if the configuration was saved and applied.
        """
        old = self.configuration
        try:
            self._config_store.save(new_config)
        except ConfigurationSaveError as e:
            self._set_error(f"Failed to save configuration: {e}")
            self._publish("last_error")
            return False

        self.configuration = new_config
        changed: set[str] = {"configuration"}
        logger.info(f"Configuration updated: {new_config}")

        if old.starred_only != new_config.starred_only:
            changed |= self._apply_filter_change()

        if (
            self.state is PlaybackState.PLAYING
            and old.transition_interval != new_config.transition_interval
        ):
            self._timer.start(new_config.transition_interval)

        if old.show_metadata != new_config.show_metadata:
            if new_config.show_metadata:
                self._request_metadata()
            else:
                self._dispatcher.cancel(METADATA_CHANNEL)
                self.current_metadata = None
                changed.add("current_metadata")

        self._publish(*changed)
        if {"images", "current_index"} & changed and self.images:
            self._load_current()
        return True

    def _apply_filter_change(self) -> set[str]:
        self._refresh_visible()
        if self._current_index >= len(self.images):
            self._current_index = 0
        self.current_metadata = None
        if not self.images:
            self._dispatcher.cancel(DECODE_CHANNEL)
            self.current_image = None
            self._set_error(NO_STARRED_FOUND if self._filtering and self.all_images else None)
            if self.state is PlaybackState.PLAYING:
                self._timer.cancel()
                self.state = PlaybackState.IDLE
        else:
            self._set_error(None)
        return {"images", "current_index", "current_image", "current_metadata", "last_error", "state"}

    def toggle_starred_only_filter(self) -> None:
        self.set_configuration(
            dataclasses.replace(self.configuration, starred_only=not self.configuration.starred_only)
        )

    def adjust_interval(self, delta: float = INTERVAL_STEP) -> None:
        """Lengthen (positive ``delta``) or shorten the transition interval."""
        self.set_configuration(
            dataclasses.replace(
                self.configuration,
                transition_interval=self.configuration.transition_interval + delta,
            )
        )

    def cycle_transition_style(self) -> None:
        styles = list(TransitionStyle)
        position = styles.index(self.configuration.transition_style)
        following = styles[(position + 1) % len(styles)]
        self.set_configuration(dataclasses.replace(self.configuration, transition_style=following))

    # ------------------------------------------------------------------
    def close(self) -> None:
        """Stop the timer and drop any in-flight work."""
        logger.info("Shutting down slideshow controller")
        logger.debug(f"Final state: {self.snapshot()}")
        self._timer.cancel()
        self._dispatcher.shutdown()
        self._subscribers.clear()

    def snapshot(self) -> dict[str, Any]:
        """Plain-data summary of the observable state, logged on folder load and shutdown."""
        record = self.current_record
        return {
            "state": self.state.value,
            "folder": str(self.folder) if self.folder else None,
            "total": len(self.all_images),
            "visible": len(self.images),
            "current_index": self.current_index,
            "current_name": record.display_name if record else None,
            "has_image": self.current_image is not None,
            "last_error": self.last_error,
        }
