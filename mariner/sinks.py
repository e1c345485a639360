"""Places a rendered page can be shown."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class DisplaySink(Protocol):
    """What the orchestrator needs from whatever displays a page."""

    async def load_page(self, html: str, base_url: str) -> None:
        """Show ``html``; return once the page has finished loading."""

    async def current_scroll_offset(self) -> float:
        ...

    async def scroll_to(self, offset: float) -> None:
        ...


class FileSink:
    """Write every page to an HTML file, for viewing in a browser.

    There is nothing to scroll here, so the offset is only remembered
    so it can be handed back unchanged.
    """

    def __init__(self, output: Path):
        self.output = Path(output)
        self.pages_written = 0
        self._offset = 0.0

    async def load_page(self, html: str, base_url: str) -> None:
        self.output.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.output.parent, suffix=".html")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(html)
        os.replace(tmp_name, self.output)
        self.pages_written += 1
        logger.info("Wrote %s", self.output)

    async def current_scroll_offset(self) -> float:
        return self._offset

    async def scroll_to(self, offset: float) -> None:
        self._offset = offset
