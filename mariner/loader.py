"""Reading markdown documents that may be mid-write."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

from .errors import ReadFailed

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class DocumentLoader:
    """Read a document as text, retrying a few times on failure.

    Editors frequently truncate and rewrite a file in place, so the read
    that follows a change notification can see an empty, missing or
    half-written file. Each retry waits ``retry_step * attempt`` seconds
    on the event loop before trying again.
    """

    def __init__(self, max_retries: int = 3, retry_step: float = 0.05,
                 reader: Callable[[Path], str] = read_text):
        self.max_retries = max_retries
        self.retry_step = retry_step
        self._reader = reader

    async def load(self, path: Path) -> str:
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            if attempt:
                await asyncio.sleep(self.retry_step * attempt)
            try:
                return self._reader(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Read attempt %d/%d of %s failed: %s", attempt + 1, attempts, path, e)

        logger.warning("Giving up on %s after %d attempts", path, attempts)
        raise ReadFailed(path, attempts)
