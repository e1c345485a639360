"""Embedding locally referenced images into rendered HTML."""

from __future__ import annotations

import base64
import html
import logging
import re
from pathlib import Path
from urllib.parse import unquote

from .errors import ImageUnreadable

logger = logging.getLogger(__name__)

PASSTHROUGH_PREFIXES = ("http://", "https://", "data:")

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}
DEFAULT_MIME_TYPE = "image/png"

_IMG_SRC_RE = re.compile(r'<img\b[^>]*?\bsrc="([^"]*)"', re.IGNORECASE)


def mime_type_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), DEFAULT_MIME_TYPE)


class ImageInliner:
    """Rewrite relative ``<img src>`` values into base64 ``data:`` URLs."""

    def inline(self, fragment: str, base_directory: Path) -> str:
        matches = list(_IMG_SRC_RE.finditer(fragment))
        # Last to first, so earlier offsets stay valid while splicing.
        for match in reversed(matches):
            src = match.group(1)
            if src.startswith(PASSTHROUGH_PREFIXES):
                continue
            try:
                data_url = self._data_url(src, base_directory)
            except ImageUnreadable as e:
                logger.debug("%s, keeping original reference", e)
                continue
            start, end = match.span(1)
            fragment = fragment[:start] + data_url + fragment[end:]
        return fragment

    def _data_url(self, src: str, base_directory: Path) -> str:
        image_path = base_directory / unquote(html.unescape(src))
        try:
            payload = image_path.read_bytes()
        except OSError as e:
            raise ImageUnreadable(image_path) from e
        encoded = base64.b64encode(payload).decode("ascii")
        return f"data:{mime_type_for(image_path)};base64,{encoded}"
