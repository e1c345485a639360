"""Markdown text to complete HTML page."""

from __future__ import annotations

from pathlib import Path

from .images import ImageInliner
from .page import PageComposer
from .renderer import GfmRenderer, MarkdownParser, MarkdownRenderer


class RenderPipeline:
    """Parse, render, inline images and compose, in that order.

    ``renderer`` selects between the hand-written tree walk (``"walk"``)
    and markdown-it's own HTML output with GFM extensions (``"gfm"``).
    """

    def __init__(self, renderer: str = "walk", composer: PageComposer | None = None,
                 inliner: ImageInliner | None = None):
        if renderer not in ("walk", "gfm"):
            raise ValueError(f"Unknown renderer: {renderer!r}")
        self.renderer_name = renderer
        self.composer = composer or PageComposer()
        self.inliner = inliner or ImageInliner()
        self._parser = MarkdownParser()
        self._walker = MarkdownRenderer()
        self._gfm = GfmRenderer() if renderer == "gfm" else None

    def render_fragment(self, text: str) -> str:
        if self._gfm is not None:
            return self._gfm.render(text)
        # The tree only lives for this call.
        return self._walker.render(self._parser.parse(text))

    def render_page(self, text: str, base_directory: Path) -> str:
        fragment = self.inliner.inline(self.render_fragment(text), base_directory)
        return self.composer.compose(fragment)

    def error_page(self) -> str:
        return self.composer.error_page()
