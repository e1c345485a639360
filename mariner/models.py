"""Plain data types shared by the pipeline components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class ChangeKind(str, Enum):
    WRITE = "write"
    DELETE = "delete"
    RENAME = "rename"


@dataclass(frozen=True)
class ChangeEvent:
    """A single file system notification for a watched document."""
    kind: ChangeKind
    path: Path


class DocumentState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RENDERING = "rendering"
    DISPLAYED = "displayed"
    ERROR_DISPLAYED = "error"
    CLOSED = "closed"


@dataclass
class Document:
    """An open markdown file and the last thing shown for it.

    ``text`` and ``page`` only ever hold the output of a complete,
    successful render; a failed load leaves them untouched and flips
    ``state`` to ``ERROR_DISPLAYED`` instead.
    """
    path: Path
    text: Optional[str] = None
    page: Optional[str] = None
    scroll_offset: float = 0.0
    state: DocumentState = DocumentState.IDLE
    render_count: int = field(default=0)

    @property
    def base_directory(self) -> Path:
        return self.path.parent

    @property
    def base_url(self) -> str:
        return self.base_directory.as_uri() + "/"
