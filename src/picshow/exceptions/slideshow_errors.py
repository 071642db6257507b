"""
Domain-specific errors for picshow.

This module defines a hierarchy of custom exceptions that are specific to the
slideshow's domain logic. Collaborators raise them and the controller maps them
onto its single `last_error` message, so callers never have to deal with raw
`OSError` or Pillow exceptions.
"""

class SlideshowError(Exception):
    """Base class for all slideshow domain errors.

    This exception should not be raised directly. Instead, subclass it to create
    more specific error types.
    """

class FolderAccessError(SlideshowError):
    """Raised when an image folder is missing, not a directory or unreadable."""


class ImageDecodeError(SlideshowError):
    """Raised when an image file cannot be opened or decoded.

    Attributes:
        display_name: Base name of the file that failed, for user-facing messages.
    """

    def __init__(self, display_name: str, reason: str = ""):
        self.display_name = display_name
        message = f"Failed to load image: {display_name}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ConfigurationSaveError(SlideshowError):
    """Raised when the configuration cannot be written to its backend."""
