"""Live-reloading Markdown to HTML renderer."""

from .errors import ImageUnreadable, MarinerError, ReadFailed, WatchUnavailable
from .images import ImageInliner
from .loader import DocumentLoader
from .models import ChangeEvent, ChangeKind, Document, DocumentState
from .orchestrator import DocumentController, RenderOrchestrator
from .page import PageComposer
from .pipeline import RenderPipeline
from .renderer import GfmRenderer, MarkdownParser, MarkdownRenderer
from .scroll_state import ScrollStateStore
from .sinks import DisplaySink, FileSink
from .watcher import ChangeWatcher

__version__ = "1.0.0"

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "ChangeWatcher",
    "DisplaySink",
    "Document",
    "DocumentController",
    "DocumentLoader",
    "DocumentState",
    "FileSink",
    "GfmRenderer",
    "ImageInliner",
    "ImageUnreadable",
    "MarinerError",
    "MarkdownParser",
    "MarkdownRenderer",
    "PageComposer",
    "ReadFailed",
    "RenderOrchestrator",
    "RenderPipeline",
    "ScrollStateStore",
    "WatchUnavailable",
]
