"""Shared fakes and fixtures."""
import asyncio
from pathlib import Path

import pytest

from mariner.config import Settings
from mariner.models import ChangeEvent, ChangeKind
from mariner.scroll_state import ScrollStateStore


class RecordingSink:
    """Display sink that remembers everything it was asked to do."""

    def __init__(self, offset: float = 0.0):
        self.offset = offset
        self.pages: list[str] = []
        self.base_urls: list[str] = []
        self.scrolls: list[float] = []
        self.calls: list[str] = []

    async def load_page(self, html, base_url):
        self.pages.append(html)
        self.base_urls.append(base_url)
        self.calls.append("load_page")

    async def current_scroll_offset(self):
        self.calls.append("current_scroll_offset")
        return self.offset

    async def scroll_to(self, offset):
        self.scrolls.append(offset)
        self.calls.append("scroll_to")


class GatedSink(RecordingSink):
    """Sink whose ``load_page`` waits for ``gate`` to be set."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.gate.set()
        self.waiting = False

    async def load_page(self, html, base_url):
        self.waiting = True
        await self.gate.wait()
        self.waiting = False
        await super().load_page(html, base_url)


class FakeWatcher:
    """Stands in for ChangeWatcher; tests push events with ``emit``."""

    def __init__(self, path: Path):
        self.path = path
        self.started = False
        self.stopped = False
        self.reattached = 0
        self._queue: asyncio.Queue = asyncio.Queue()

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True
        self._queue.put_nowait(None)

    def reattach(self):
        self.reattached += 1

    def emit(self, kind: ChangeKind):
        self._queue.put_nowait(ChangeEvent(kind, self.path))

    async def events(self):
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, *exc_info):
        self.stop()


class WatcherRegistry:
    """Watcher factory that keeps hold of the watchers it made."""

    def __init__(self):
        self.watchers: list[FakeWatcher] = []

    def __call__(self, path):
        watcher = FakeWatcher(path)
        self.watchers.append(watcher)
        return watcher

    @property
    def last(self) -> FakeWatcher:
        return self.watchers[-1]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        debounce=0.05,
        retry_step=0.01,
        max_retries=3,
        state_file=tmp_path / "state" / "scroll.json",
    )


@pytest.fixture
def scroll_store(settings):
    return ScrollStateStore(settings.state_file)


@pytest.fixture
def watchers():
    return WatcherRegistry()


@pytest.fixture
def doc_path(tmp_path):
    path = tmp_path / "doc.md"
    path.write_text("# Title\n\nHello **world**.\n", encoding="utf-8")
    return path
