"""The live-reload control loop.

Every open document gets a :class:`DocumentController`. All of its work
(change notifications, the debounce timer, read retries, rendering and
scroll bookkeeping) runs as callbacks and tasks on the one asyncio event
loop, so two renders of the same document never overlap. At most one
render task exists per document; a change that lands while it runs only
sets a flag asking for one more pass.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Callable, Optional

from .config import Settings
from .errors import ReadFailed, WatchUnavailable
from .loader import DocumentLoader
from .models import ChangeEvent, ChangeKind, Document, DocumentState
from .pipeline import RenderPipeline
from .scroll_state import ScrollStateStore
from .sinks import DisplaySink
from .watcher import ChangeWatcher, observer_factory

logger = logging.getLogger(__name__)

WatcherFactory = Callable[[Path], ChangeWatcher]


class DocumentController:
    """Keeps one document's sink in step with the file on disk."""

    def __init__(self, document: Document, sink: DisplaySink, pipeline: RenderPipeline,
                 loader: DocumentLoader, scroll_store: ScrollStateStore,
                 debounce: float = 0.1, watcher_factory: Optional[WatcherFactory] = None):
        self.document = document
        self.sink = sink
        self._pipeline = pipeline
        self._loader = loader
        self._scroll_store = scroll_store
        self._debounce = debounce
        self._watcher_factory = watcher_factory

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._resources = AsyncExitStack()
        self._watcher: Optional[ChangeWatcher] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._render_task: Optional[asyncio.Task] = None
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._pending = False
        self._reattach_pending = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def live(self) -> bool:
        """True while file changes are being watched."""
        return self._watcher is not None and not self._closed

    async def start(self) -> None:
        """Start watching and run the initial render."""
        self._loop = asyncio.get_running_loop()
        doc = self.document
        doc.scroll_offset = self._scroll_store.get(doc.path)

        if self._watcher_factory is not None:
            watcher = self._watcher_factory(doc.path)
            try:
                self._watcher = await self._resources.enter_async_context(watcher)
            except WatchUnavailable as e:
                logger.warning("%s; showing it without live reload", e)
            else:
                self._pump_task = self._loop.create_task(self._pump(watcher))

        self._request_render(initial=True)
        await self.wait_idle()

    async def _pump(self, watcher: ChangeWatcher) -> None:
        async for event in watcher.events():
            self.notify_change(event)

    def notify_change(self, event: ChangeEvent) -> None:
        """Debounce a change notification into a render request."""
        if self._closed or self._loop is None:
            return
        logger.debug("%s: %s", event.kind.value, self.document.path)

        if event.kind in (ChangeKind.DELETE, ChangeKind.RENAME):
            self._reattach_pending = True
        if self.document.state is DocumentState.ERROR_DISPLAYED:
            self.document.state = DocumentState.IDLE

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self._loop.call_later(self._debounce, self._debounce_elapsed)

    def _debounce_elapsed(self) -> None:
        self._debounce_handle = None
        if self._closed:
            return
        self._request_render()

    def reload(self) -> None:
        """Render again right away, skipping the debounce window."""
        if self._closed or self._loop is None:
            return
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._request_render()

    def _request_render(self, initial: bool = False) -> None:
        if self._render_task is not None and not self._render_task.done():
            self._pending = True
            return
        self._render_task = self._loop.create_task(self._render_loop(initial))

    async def wait_idle(self) -> None:
        """Wait for the in-flight render, and any it queued, to finish."""
        while self._render_task is not None and not self._render_task.done():
            await asyncio.wait({self._render_task})

    async def _render_loop(self, initial: bool) -> None:
        while True:
            try:
                await self._render_once(initial)
            except Exception:
                logger.exception("Rendering %s failed, keeping the previous page", self.document.path)
            initial = False
            if self._closed or not self._pending:
                return
            self._pending = False

    async def _render_once(self, initial: bool) -> None:
        doc = self.document

        if not initial and doc.state is DocumentState.DISPLAYED:
            # Remember where the reader was so the new page opens there too.
            # The error page has no meaningful offset; keep the cached one.
            offset = await self.sink.current_scroll_offset()
            if self._closed:
                return
            doc.scroll_offset = offset

        reattach, self._reattach_pending = self._reattach_pending, False
        doc.state = DocumentState.LOADING

        try:
            text = await self._loader.load(doc.path)
        except ReadFailed as e:
            if self._closed:
                return
            logger.error("%s", e)
            doc.state = DocumentState.ERROR_DISPLAYED
            await self.sink.load_page(self._pipeline.error_page(), doc.base_url)
        else:
            if self._closed:
                return
            doc.state = DocumentState.RENDERING
            page = self._pipeline.render_page(text, doc.base_directory)
            doc.text, doc.page = text, page
            doc.render_count += 1
            await self.sink.load_page(page, doc.base_url)
            if self._closed:
                return
            await self.sink.scroll_to(doc.scroll_offset)
            self._scroll_store.set(doc.path, doc.scroll_offset)
            doc.state = DocumentState.DISPLAYED
            logger.info("Rendered %s (%d chars)", doc.path, len(text))

        if reattach and self._watcher is not None and not self._closed:
            self._watcher.reattach()

    async def close(self) -> None:
        """Stop watching, cancel queued work and save the scroll offset."""
        if self._closed:
            return

        if self.document.state is DocumentState.DISPLAYED:
            try:
                self.document.scroll_offset = await self.sink.current_scroll_offset()
            except Exception:
                logger.exception("Could not read scroll offset for %s", self.document.path)
        self._scroll_store.set(self.document.path, self.document.scroll_offset)

        self._closed = True
        self.document.state = DocumentState.CLOSED
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

        tasks = [t for t in (self._render_task, self._pump_task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        await self._resources.aclose()
        self._watcher = None
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("Closed %s", self.document.path)


class RenderOrchestrator:
    """Registry of open documents sharing one pipeline and scroll store."""

    def __init__(self, settings: Settings, scroll_store: ScrollStateStore,
                 pipeline: Optional[RenderPipeline] = None,
                 loader: Optional[DocumentLoader] = None,
                 watch: bool = True,
                 watcher_factory: Optional[WatcherFactory] = None):
        self.settings = settings
        self.scroll_store = scroll_store
        self.pipeline = pipeline or RenderPipeline(settings.renderer)
        self.loader = loader or DocumentLoader(settings.max_retries, settings.retry_step)
        self._watch = watch
        self._watcher_factory = watcher_factory
        self._controllers: dict[Path, DocumentController] = {}

    def _default_watcher(self, path: Path) -> ChangeWatcher:
        return ChangeWatcher(path, asyncio.get_running_loop(), observer_factory(self.settings.polling))

    @staticmethod
    def _key(path: Path | str) -> Path:
        return Path(path).expanduser().absolute()

    def get(self, path: Path | str) -> Optional[DocumentController]:
        return self._controllers.get(self._key(path))

    @property
    def documents(self) -> list[Document]:
        return [c.document for c in self._controllers.values()]

    async def open(self, path: Path | str, sink: DisplaySink) -> DocumentController:
        key = self._key(path)
        if key in self._controllers:
            raise ValueError(f"{key} is already open")

        factory = None
        if self._watch:
            factory = self._watcher_factory or self._default_watcher

        controller = DocumentController(
            Document(key), sink, self.pipeline, self.loader, self.scroll_store,
            debounce=self.settings.debounce, watcher_factory=factory,
        )
        self._controllers[key] = controller
        await controller.start()
        return controller

    async def reload(self, path: Path | str) -> None:
        controller = self.get(path)
        if controller is None:
            raise KeyError(str(path))
        controller.reload()
        await controller.wait_idle()

    async def close(self, path: Path | str) -> None:
        controller = self._controllers.pop(self._key(path), None)
        if controller is not None:
            await controller.close()

    async def shutdown(self) -> None:
        """Close every document, then persist scroll offsets."""
        for key in list(self._controllers):
            await self.close(key)
        self.scroll_store.flush()

    async def __aenter__(self) -> "RenderOrchestrator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()
