"""Textual widgets for the terminal host."""

from __future__ import annotations

from textual.containers import VerticalScroll
from textual.message import Message
from textual.widgets import Static

from rich.syntax import Syntax
from rich.text import Text

THEME = """
$primary: #61afef;
$secondary: #c678dd;
$background: #1a1a1a;
$surface: #21252b;

Screen {
    background: $background;
}

Header {
    display: none;
}

Footer {
    background: $surface;
    color: #5c6370;
}

#viewer {
    background: $background;
    padding: 1 3;
    scrollbar-gutter: stable;
    scrollbar-size-vertical: 1;
}

.page-source {
    background: $background;
}

#status {
    dock: bottom;
    height: 1;
    background: $surface;
    color: #5c6370;
    padding: 0 2;
}

#status.error {
    color: #e06c75;
}
"""


class PageSource(Static):
    """The rendered page, shown as highlighted HTML source."""

    def __init__(self):
        super().__init__(Text("Loading...", style="italic #5c6370"), id="page-source")
        self.add_class("page-source")

    def show(self, html: str) -> None:
        self.update(Syntax(
            html,
            "html",
            theme="monokai",
            line_numbers=True,
            word_wrap=False,
            background_color="#1a1a1a",
        ))


class HtmlPreview(VerticalScroll):
    """Scrollable view of the most recent page."""

    class PageLoaded(Message):
        """Posted after a new page has been placed in the view."""
        def __init__(self, html: str, base_url: str):
            super().__init__()
            self.html = html
            self.base_url = base_url

    def __init__(self):
        super().__init__(id="viewer")
        self.html = ""
        self.base_url = ""

    def compose(self):
        yield PageSource()

    def show_page(self, html: str, base_url: str) -> None:
        self.html = html
        self.base_url = base_url
        with self.app.batch_update():
            self.query_one(PageSource).show(html)
        self.post_message(self.PageLoaded(html, base_url))


class PreviewSink:
    """Display sink backed by an :class:`HtmlPreview` widget."""

    def __init__(self, viewer: HtmlPreview):
        self.viewer = viewer

    async def load_page(self, html: str, base_url: str) -> None:
        self.viewer.show_page(html, base_url)

    async def current_scroll_offset(self) -> float:
        return float(self.viewer.scroll_y)

    async def scroll_to(self, offset: float) -> None:
        # The new content is only measured on the next refresh.
        self.viewer.call_after_refresh(self.viewer.scroll_to, y=offset, animate=False)
