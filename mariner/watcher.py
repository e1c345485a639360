"""File system change notifications for a single document."""

from __future__ import annotations

import asyncio
import logging
import os
from functools import partial
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch
from watchdog.observers.polling import PollingObserver

from .errors import WatchUnavailable
from .models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 2.0


def observer_factory(polling: bool = False) -> Callable[[], BaseObserver]:
    if polling:
        return partial(PollingObserver, timeout=0.25)
    return Observer


class _DocumentEventHandler(FileSystemEventHandler):
    """Translate watchdog events on the parent directory into ChangeEvents.

    Runs on the observer thread; ``emit`` must be thread safe.
    """

    def __init__(self, path: Path, emit: Callable[[ChangeEvent], None]):
        super().__init__()
        self._path = path
        self._target = os.path.abspath(path)
        self._emit = emit

    def _is_target(self, raw_path) -> bool:
        return os.path.abspath(os.fsdecode(raw_path)) == self._target

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            self._emit(ChangeEvent(ChangeKind.WRITE, self._path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            self._emit(ChangeEvent(ChangeKind.WRITE, self._path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            self._emit(ChangeEvent(ChangeKind.DELETE, self._path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if self._is_target(event.src_path) or self._is_target(event.dest_path):
            self._emit(ChangeEvent(ChangeKind.RENAME, self._path))


class ChangeWatcher:
    """Owned watch handle for one document path.

    The watch is placed on the document's directory rather than the file
    itself, so editors that save through a temporary file and a rename
    keep being observed. Events are delivered on the event loop through
    :meth:`events`, which ends once :meth:`stop` has been called.
    """

    def __init__(self, path: Path, loop: asyncio.AbstractEventLoop,
                 observer_factory: Callable[[], BaseObserver] = Observer):
        self.path = Path(path).absolute()
        self._directory = str(self.path.parent)
        self._loop = loop
        self._observer_factory = observer_factory
        self._observer: Optional[BaseObserver] = None
        self._watch: Optional[ObservedWatch] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._handler = _DocumentEventHandler(self.path, self._post)

    @property
    def running(self) -> bool:
        return self._observer is not None

    def _post(self, event: ChangeEvent) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            logger.debug("Event loop closed, dropping %s for %s", event.kind.value, self.path)

    def start(self) -> None:
        if self._observer is not None:
            return
        if not self.path.parent.is_dir():
            raise WatchUnavailable(self.path, "directory does not exist")

        observer = self._observer_factory()
        observer.daemon = True
        try:
            observer.start()
            self._watch = observer.schedule(self._handler, self._directory, recursive=False)
        except OSError as e:
            observer.stop()
            raise WatchUnavailable(self.path, str(e)) from e
        self._observer = observer
        logger.debug("Watching %s", self.path)

    def reattach(self) -> None:
        """Re-register the watch on the same path after a replace."""
        if self._observer is None:
            return
        if self._watch is not None:
            try:
                self._observer.unschedule(self._watch)
            except KeyError:
                pass
            self._watch = None
        try:
            self._watch = self._observer.schedule(self._handler, self._directory, recursive=False)
        except OSError as e:
            logger.warning("Could not re-attach watch on %s: %s", self.path, e)
            return
        logger.debug("Re-attached watch on %s", self.path)

    def _detach(self) -> Optional[BaseObserver]:
        observer, self._observer = self._observer, None
        self._watch = None
        if observer is not None:
            observer.stop()
        return observer

    def stop(self) -> None:
        observer = self._detach()
        if observer is not None:
            observer.join(STOP_TIMEOUT)
            logger.debug("Stopped watching %s", self.path)
        self._queue.put_nowait(None)

    async def aclose(self) -> None:
        """Like :meth:`stop`, but joins the observer thread off the event loop."""
        observer = self._detach()
        if observer is not None:
            await self._loop.run_in_executor(None, observer.join, STOP_TIMEOUT)
            logger.debug("Stopped watching %s", self.path)
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[ChangeEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def __enter__(self) -> "ChangeWatcher":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    async def __aenter__(self) -> "ChangeWatcher":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
