"""Exceptions raised by the rendering pipeline."""

from __future__ import annotations

from pathlib import Path


class MarinerError(Exception):
    """Base class for pipeline errors."""


class ReadFailed(MarinerError):
    """The document could not be read, even after retrying."""

    def __init__(self, path: Path, attempts: int):
        super().__init__(f"Could not read {path} after {attempts} attempts")
        self.path = path
        self.attempts = attempts


class ImageUnreadable(MarinerError):
    """A locally referenced image is missing or unreadable."""

    def __init__(self, path: Path):
        super().__init__(f"Image not readable: {path}")
        self.path = path


class WatchUnavailable(MarinerError):
    """No file system watch could be obtained for the document."""

    def __init__(self, path: Path, reason: str = ""):
        message = f"Cannot watch {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path
