"""
Persistence of the slideshow `Configuration`.

Settings are written as flat keys into a key/value backend. Each key is
namespaced with an optional instance identifier so several copies of the
application can run side by side without overwriting each other's settings:

    picshow.transitionInterval            (shared, no instance id)
    picshow.<instance_id>.transitionInterval

Two backends are provided: `JsonFileBackend`, which keeps every key in a single
JSON document on disk, and `MemoryBackend`, which keeps them in a dict for
tests and embedding.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from .config import DEFAULT_SETTINGS_FILE, SETTINGS_KEY_PREFIX
from .exceptions.slideshow_errors import ConfigurationSaveError
from .models import Configuration, TransitionStyle

logger = logging.getLogger(__name__)

# Field name on the Configuration record -> stored base key.
_KEYS = {
    'transition_interval': 'transitionInterval',
    'transition_style': 'transitionStyle',
    'last_folder': 'lastFolderPath',
    'starred_only': 'showOnlyStarred',
    'show_metadata': 'showMetadata',
}


class KeyValueBackend(Protocol):
    def read(self) -> dict[str, Any]:  # pragma: no cover - protocol
        ...

    def write(self, values: dict[str, Any]) -> None:  # pragma: no cover - protocol
        ...


class MemoryBackend:
    """Keeps values in a dict. Shared between stores to simulate one machine."""

    def __init__(self, values: dict[str, Any] | None = None):
        self.values: dict[str, Any] = dict(values or {})

    def read(self) -> dict[str, Any]:
        return dict(self.values)

    def write(self, values: dict[str, Any]) -> None:
        self.values = dict(values)


class JsonFileBackend:
    """
    Keeps values in a JSON object stored in a single file.

    Writes go to a temporary file that is then renamed over the target, so a
    crash mid-write never leaves a truncated settings file behind.
    """

    def __init__(self, path: Path = DEFAULT_SETTINGS_FILE):
        self.path = Path(path)

    def read(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"Settings file not found: {self.path}. Using defaults.")
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read settings from '{self.path}': {e}. Using defaults.")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Settings file '{self.path}' does not contain an object. Using defaults.")
            return {}
        return data

    def write(self, values: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix='.settings-', suffix='.json', dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(values, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class ConfigurationStore:
    """
    Loads and saves a `Configuration` through a key/value backend.

    Args:
        backend: Where the keys are stored.
        instance_id: Optional namespace. Stores built with different ids never
                     see each other's values; stores built without one share
                     the same keys.
    """

    def __init__(self, backend: KeyValueBackend, instance_id: str | None = None):
        self.backend = backend
        self.instance_id = instance_id

    def make_key(self, base_key: str) -> str:
        if self.instance_id is not None:
            return f"{SETTINGS_KEY_PREFIX}.{self.instance_id}.{base_key}"
        return f"{SETTINGS_KEY_PREFIX}.{base_key}"

    def load(self) -> Configuration:
        values = self.backend.read()
        defaults = Configuration()
        kwargs: dict[str, Any] = {}

        interval = values.get(self.make_key(_KEYS['transition_interval']))
        if isinstance(interval, (int, float)) and not isinstance(interval, bool):
            kwargs['transition_interval'] = float(interval)

        style = values.get(self.make_key(_KEYS['transition_style']))
        try:
            kwargs['transition_style'] = TransitionStyle(style) if style is not None else defaults.transition_style
        except ValueError:
            logger.warning(f"Ignoring unknown transition style {style!r} in settings.")

        folder = values.get(self.make_key(_KEYS['last_folder']))
        if isinstance(folder, str):
            kwargs['last_folder'] = folder

        for field_name in ('starred_only', 'show_metadata'):
            flag = values.get(self.make_key(_KEYS[field_name]))
            if isinstance(flag, bool):
                kwargs[field_name] = flag

        configuration = Configuration(**kwargs)
        logger.debug(f"Loaded configuration: {configuration}")
        return configuration

    def save(self, configuration: Configuration) -> None:
        try:
            values = self.backend.read()
            values[self.make_key(_KEYS['transition_interval'])] = configuration.transition_interval
            values[self.make_key(_KEYS['transition_style'])] = configuration.transition_style.value
            folder_key = self.make_key(_KEYS['last_folder'])
            if configuration.last_folder is None:
                values.pop(folder_key, None)
            else:
                values[folder_key] = configuration.last_folder
            values[self.make_key(_KEYS['starred_only'])] = configuration.starred_only
            values[self.make_key(_KEYS['show_metadata'])] = configuration.show_metadata
            self.backend.write(values)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save configuration: {e}")
            raise ConfigurationSaveError(str(e)) from e
        logger.debug(f"Saved configuration: {configuration}")
