# -*- coding: utf-8 -*-
"""
Configuration and fixtures for pytest.

This module defines shared fixtures used across the test suite for picshow.
Fixtures include temporary directories for images, mocking of GUI components
(Tkinter), a fake `after` scheduler with a virtual clock, an executor that runs
work inline, and in-memory fakes of the controller's collaborators.
"""

import concurrent.futures
import logging
from collections import deque
from pathlib import Path
from typing import Iterator
from unittest.mock import MagicMock

import pytest
from PIL import Image

from picshow.controller import SlideshowController
from picshow.exceptions.slideshow_errors import FolderAccessError, ImageDecodeError
from picshow.models import ImageMetadata, ImageRecord
from picshow.scheduling import TaskDispatcher
from picshow.settings import ConfigurationStore, MemoryBackend


class FakeWindow:
    """
    Stand-in for a Tk widget's `after`/`after_cancel` with a virtual clock.

    Nothing runs until the test calls `advance`, which fires every callback
    that falls due, in order, including ones scheduled while advancing.
    """

    def __init__(self):
        self.now_ms = 0
        self._pending: dict[str, tuple[int, int, object, tuple]] = {}
        self._seq = 0

    def after(self, ms, func, *args):
        self._seq += 1
        after_id = f"after#{self._seq}"
        self._pending[after_id] = (self.now_ms + int(ms), self._seq, func, args)
        return after_id

    def after_cancel(self, after_id):
        self._pending.pop(after_id, None)

    def advance(self, seconds: float) -> None:
        target = self.now_ms + int(round(seconds * 1000))
        while True:
            due = [(when, seq, after_id) for after_id, (when, seq, _, _) in self._pending.items() if when <= target]
            if not due:
                break
            when, _, after_id = min(due)
            _, _, func, args = self._pending.pop(after_id)
            self.now_ms = when
            func(*args)
        self.now_ms = target

    @property
    def scheduled(self) -> int:
        return len(self._pending)


class InlineExecutor(concurrent.futures.Executor):
    """Runs submitted work immediately in the calling thread."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs):
        self.submitted += 1
        future = concurrent.futures.Future()
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class ManualExecutor(concurrent.futures.Executor):
    """Queues work until the test runs it with `run_next` or `run_all`."""

    def __init__(self):
        self.queue = deque()

    def submit(self, fn, /, *args, **kwargs):
        future = concurrent.futures.Future()
        self.queue.append((future, fn, args, kwargs))
        return future

    def run_next(self) -> bool:
        future, fn, args, kwargs = self.queue.popleft()
        if not future.set_running_or_notify_cancel():
            return False
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return True

    def run_latest(self) -> bool:
        """Run the most recently submitted work ahead of the rest."""
        self.queue.rotate(1)
        return self.run_next()

    def run_all(self) -> None:
        while self.queue:
            self.run_next()


class FakeImageSource:
    """
    In-memory image source.

    Folders are registered with `add_folder`; any name listed in `failing`
    raises `ImageDecodeError` when decoded. Each successful decode returns a
    new tiny image, remembered in `images` by file name.
    """

    def __init__(self):
        self.folders: dict[Path, list[str]] = {}
        self.failing: set[str] = set()
        self.decoded: list[str] = []
        self.images: dict[str, Image.Image] = {}

    def add_folder(self, folder: Path, names) -> Path:
        self.folders[Path(folder)] = list(names)
        return Path(folder)

    def enumerate(self, folder):
        folder = Path(folder)
        if folder not in self.folders:
            raise FolderAccessError(f"'{folder}' does not exist or is not a directory")
        return [ImageRecord.from_path(folder / name) for name in self.folders[folder]]

    def decode(self, location):
        name = Path(location).name
        self.decoded.append(name)
        if name in self.failing:
            raise ImageDecodeError(name, "corrupt data")
        image = Image.new('RGB', (4, 4), color='blue')
        self.images[name] = image
        return image


class MemoryStarStore:
    """Star store keeping the per-folder sets in a dict."""

    def __init__(self):
        self.starred: dict[Path, set[Path]] = {}

    def is_starred(self, location, folder):
        return Path(location) in self.starred.get(Path(folder), set())

    def set_starred(self, location, folder, starred):
        entries = self.starred.setdefault(Path(folder), set())
        if starred:
            entries.add(Path(location))
        else:
            entries.discard(Path(location))

    def starred_set(self, folder):
        return set(self.starred.get(Path(folder), set()))


class FakeMetadataSource:
    def __init__(self):
        self.requests: list[str] = []

    def extract(self, location):
        self.requests.append(Path(location).name)
        return ImageMetadata(camera_make="Canon", camera_model="EOS R5", iso=200)


@pytest.fixture
def tmp_image_dir(tmp_path: Path) -> Iterator[Path]:
    """
    Create a temporary 'data' directory populated with a few small PNG images.

    Args:
        tmp_path (Path): The pytest fixture for creating temporary directories.

    Yields:
        Path: The path to the 'data' directory containing the test images.
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for name, color in (("test_image.png", 'red'), ("photo2.png", 'green'), ("photo10.png", 'blue')):
        dummy_image = Image.new('RGB', (100, 100), color=color)
        dummy_image.save(data_dir / name, 'PNG')

    yield data_dir


@pytest.fixture
def patch_tk(mocker):
    """
    Patch the Tkinter module to avoid GUI instantiation during tests.

    Args:
        mocker: The pytest-mock fixture.

    Returns:
        dict: A dictionary containing the mocked 'Tk' and 'Canvas' classes.
    """
    mock_tk = mocker.patch('tkinter.Tk', autospec=True)
    mock_canvas = mocker.patch('tkinter.Canvas', autospec=True)
    return {
        "Tk": mock_tk,
        "Canvas": mock_canvas,
    }


@pytest.fixture
def dummy_canvas(patch_tk):
    """
    Provide a dummy Tkinter Canvas instance sized 800x600.
    """
    canvas = patch_tk["Canvas"].return_value
    canvas.winfo_width.return_value = 800
    canvas.winfo_height.return_value = 600
    canvas.bbox.return_value = (0, 0, 300, 40)
    return canvas


@pytest.fixture
def caplog_info(caplog):
    """
    Set the logging level to INFO for the duration of a test.
    """
    caplog.set_level(logging.INFO)
    return caplog


@pytest.fixture
def fake_window() -> FakeWindow:
    return FakeWindow()


@pytest.fixture
def image_source() -> FakeImageSource:
    return FakeImageSource()


@pytest.fixture
def star_store() -> MemoryStarStore:
    return MemoryStarStore()


@pytest.fixture
def metadata_source() -> FakeMetadataSource:
    return FakeMetadataSource()


@pytest.fixture
def config_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def make_controller(fake_window, image_source, star_store, config_backend, metadata_source):
    """Factory building controllers that share the fakes above."""

    def factory(instance_id=None, config_store=None):
        return SlideshowController(
            fake_window,
            image_source,
            config_store or ConfigurationStore(config_backend, instance_id=instance_id),
            star_store,
            metadata_source,
            dispatcher=TaskDispatcher(fake_window, InlineExecutor()),
        )

    return factory


@pytest.fixture
def controller(make_controller) -> SlideshowController:
    return make_controller()


@pytest.fixture
def photo_folder(tmp_path, image_source) -> Path:
    """A five-image folder known to the fake image source."""
    return image_source.add_folder(tmp_path / "photos", [f"img{i}.jpg" for i in range(1, 6)])


@pytest.fixture
def loaded_controller(controller, photo_folder) -> SlideshowController:
    controller.load_folder(photo_folder)
    return controller


@pytest.fixture
def mock_view():
    """A mock SlideshowWindow for exercising the control handlers."""
    view = MagicMock()
    view.canvas.winfo_height.return_value = 600
    view.is_fullscreen = False
    view.always_on_top = False
    view.show_full_hud = False
    return view


@pytest.fixture
def manual_executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()
