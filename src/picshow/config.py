"""
Configuration constants for picshow.

This module centralizes settings like supported file types, default values,
and other configuration parameters to make them easily accessible and modifiable
across the application. User-editable settings live in the persisted
`Configuration` record (see `picshow.models` and `picshow.settings`).
"""

from pathlib import Path

# A tuple of supported image file extensions (case-insensitive).
# These are the formats that the application will attempt to load and display.
SUPPORTED_IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.gif', '.bmp', '.tiff', '.tif', '.webp')

# Default interval in seconds between image transitions in automatic playback mode.
DEFAULT_TRANSITION_INTERVAL = 5.0

# Bounds for the transition interval. Every Configuration is clamped to them.
MIN_TRANSITION_INTERVAL = 1.0
MAX_TRANSITION_INTERVAL = 60.0

# Step used by the keyboard shortcuts that speed up or slow down playback.
INTERVAL_STEP = 1.0

# Default logging level for the application.
# Can be 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'.
DEFAULT_LOG_LEVEL = 'INFO'

# Name of the file used to store the starred images of a folder.
# This file is created in the root of the scanned image folder.
STARRED_FILENAME = 'starred.txt'

# Where the settings backend keeps its JSON document by default.
DEFAULT_SETTINGS_FILE = Path.home() / '.config' / 'picshow' / 'settings.json'

# Prefix for every key written by the configuration store.
SETTINGS_KEY_PREFIX = 'picshow'

# How often (ms) the Tk thread drains completed background work.
DISPATCH_POLL_MS = 20

# Number of worker threads used for decoding and metadata extraction.
IO_WORKERS = 2
