#!/usr/bin/env python3
"""
Mariner - live-reloading Markdown to HTML renderer.

Usage:
    mariner document.md                    # terminal preview, reloads on save
    mariner document.md -o document.html   # keep document.html up to date
    mariner document.md --once             # render once and exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from .config import RENDERERS, Settings, load_settings, setup_logging
from .models import DocumentState
from .orchestrator import DocumentController, RenderOrchestrator
from .scroll_state import ScrollStateStore
from .sinks import FileSink
from .widgets import THEME, HtmlPreview, PreviewSink

logger = logging.getLogger(__name__)


def open_externally(target: Path) -> None:
    """Hand a file to the desktop's default application."""
    if os.name == "posix":
        cmd = "open" if sys.platform == "darwin" else "xdg-open"
        subprocess.Popen([cmd, str(target)], stderr=subprocess.DEVNULL, stdout=subprocess.DEVNULL)
    elif os.name == "nt":
        os.startfile(str(target))


# ============================================================================
# Main Application
# ============================================================================

class MarinerApp(App):
    """Terminal host that shows the live page and drives reloads."""

    CSS = THEME

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "reload", "Reload", show=True),
        Binding("o", "open_browser", "Open in browser", show=True),
    ]

    TITLE = "Mariner"

    def __init__(self, filepath: Path, settings: Settings):
        super().__init__()
        self.filepath = filepath.expanduser().absolute()
        self.settings = settings
        self.scroll_store = ScrollStateStore(settings.state_file)
        self.orchestrator = RenderOrchestrator(settings, self.scroll_store)
        self.controller: Optional[DocumentController] = None

    def compose(self) -> ComposeResult:
        yield HtmlPreview()
        yield Static("", id="status")
        yield Footer()

    async def on_mount(self) -> None:
        self.sub_title = str(self.filepath)
        viewer = self.query_one(HtmlPreview)
        self.controller = await self.orchestrator.open(self.filepath, PreviewSink(viewer))
        if not self.controller.live:
            self.notify("Live reload unavailable for this file", severity="warning")
        self._update_status()

    def on_html_preview_page_loaded(self, message: HtmlPreview.PageLoaded) -> None:
        self._update_status()

    def _update_status(self) -> None:
        controller = self.orchestrator.get(self.filepath)
        if controller is None:
            return
        doc = controller.document
        status = self.query_one("#status", Static)

        if doc.state is DocumentState.ERROR_DISPLAYED:
            status.add_class("error")
            status.update(f"{doc.path.name} • could not read file")
            return

        status.remove_class("error")
        if doc.text is None:
            status.update(f"{doc.path.name} • {doc.state.value}")
            return
        lines = doc.text.count('\n') + 1
        live = "live" if controller.live else "static"
        status.update(
            f"{doc.path.name} • {len(doc.text):,} chars • {lines:,} lines"
            f" • {live} • render #{doc.render_count}"
        )

    def action_reload(self) -> None:
        """Reload current file."""
        self.notify("Reloading...", timeout=1)
        self.run_worker(self.orchestrator.reload(self.filepath), exclusive=True)

    def action_open_browser(self) -> None:
        """Write the current page to a file and open it."""
        viewer = self.query_one(HtmlPreview)
        if not viewer.html:
            self.notify("Nothing rendered yet", severity="warning")
            return
        target = Path(tempfile.gettempdir()) / f"mariner-{self.filepath.stem}.html"
        try:
            target.write_text(viewer.html, encoding="utf-8")
            open_externally(target)
        except OSError as e:
            self.notify(f"Failed to open: {e}", severity="error")
            return
        self.notify(f"Opening: {target.name}", timeout=2)

    async def action_quit(self) -> None:
        await self.orchestrator.shutdown()
        self.exit()

    async def on_unmount(self) -> None:
        # Exits that skip action_quit still save the live scroll offset.
        await self.orchestrator.shutdown()


# ============================================================================
# Headless modes
# ============================================================================

async def render_once(filepath: Path, output: Path, settings: Settings) -> int:
    """Render a single time into ``output``; non-zero if the file was unreadable."""
    store = ScrollStateStore(settings.state_file)
    async with RenderOrchestrator(settings, store, watch=False) as orchestrator:
        controller = await orchestrator.open(filepath, FileSink(output))
        failed = controller.document.state is DocumentState.ERROR_DISPLAYED
    return 1 if failed else 0


async def watch_to_file(filepath: Path, output: Path, settings: Settings) -> None:
    """Keep ``output`` in step with ``filepath`` until cancelled."""
    store = ScrollStateStore(settings.state_file)
    async with RenderOrchestrator(settings, store) as orchestrator:
        controller = await orchestrator.open(filepath, FileSink(output))
        if not controller.live:
            logger.warning("Live reload unavailable, %s was rendered once", filepath)
            return
        logger.info("Watching %s, press Ctrl+C to stop", filepath)
        await asyncio.Event().wait()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mariner",
        description="Render a Markdown file to HTML and re-render it whenever it changes.",
    )
    parser.add_argument("file", type=Path, help="Markdown document to render")
    parser.add_argument("-o", "--output", type=Path,
                        help="write the page to this HTML file instead of the terminal preview")
    parser.add_argument("--once", action="store_true",
                        help="render a single time and exit (default output: FILE with .html suffix)")
    parser.add_argument("--renderer", choices=RENDERERS,
                        help="'walk' for the built-in renderer, 'gfm' for markdown-it with GFM extensions")
    parser.add_argument("--debounce-ms", type=int, help="delay before acting on a burst of changes")
    parser.add_argument("--polling", action="store_true", default=None,
                        help="poll for changes instead of using OS notifications")
    parser.add_argument("--state-file", type=Path, help="where scroll positions are kept")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)

    settings = load_settings().with_overrides(
        renderer=args.renderer,
        debounce=args.debounce_ms / 1000 if args.debounce_ms is not None else None,
        polling=args.polling,
        state_file=args.state_file,
        log_level=args.log_level.upper() if args.log_level else None,
    )
    filepath = args.file.expanduser().absolute()
    headless = args.once or args.output is not None
    setup_logging(settings.log_level, tui=not headless)

    if args.once:
        output = args.output or filepath.with_suffix(".html")
        return asyncio.run(render_once(filepath, output, settings))

    if args.output is not None:
        try:
            asyncio.run(watch_to_file(filepath, args.output, settings))
        except KeyboardInterrupt:
            pass
        return 0

    MarinerApp(filepath, settings).run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
