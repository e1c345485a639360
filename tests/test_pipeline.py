"""Tests for page composition and the end-to-end pipeline."""
import base64
import re

import pytest

from mariner.page import ERROR_FRAGMENT, PageComposer
from mariner.pipeline import RenderPipeline


def test_compose_wraps_fragment():
    page = PageComposer().compose("<p>hi</p>")
    assert page.startswith("<!DOCTYPE html>")
    assert '<article class="markdown-body">\n<p>hi</p>\n    </article>' in page
    assert "highlight.min.js" in page
    assert "hljs.highlightElement(block)" in page
    assert "languages/swift.min.js" in page
    assert ".markdown-body h1" in page


def test_compose_keeps_dollar_signs_in_fragment():
    page = PageComposer().compose("<p>$body costs $5</p>")
    assert "<p>$body costs $5</p>" in page


def test_error_page():
    page = PageComposer().error_page()
    assert ERROR_FRAGMENT in page
    assert page.startswith("<!DOCTYPE html>")


def test_end_to_end_page(tmp_path):
    page = RenderPipeline().render_page("# Title\n\nHello **world**.", tmp_path)
    assert "<h1>Title</h1>" in page
    assert "<p>Hello <strong>world</strong>.</p>" in page


@pytest.mark.parametrize("renderer", ["walk", "gfm"])
def test_rendering_is_idempotent(tmp_path, renderer):
    (tmp_path / "pic.png").write_bytes(b"0123456789")
    text = "# A\n\n![p](pic.png)\n\n- x\n- y\n\n```py\nz = 1\n```\n"
    pipeline = RenderPipeline(renderer)
    assert pipeline.render_page(text, tmp_path) == pipeline.render_page(text, tmp_path)


def test_escaped_output_has_no_raw_specials_outside_tags(tmp_path):
    fragment = RenderPipeline().render_fragment("a <script>&\"'")
    text_only = re.sub(r"</?[a-z][^>]*>", "", fragment)
    for ch in "<>\"'":
        assert ch not in text_only
    assert "&" not in text_only.replace("&amp;", "").replace("&quot;", "").replace("&#39;", "")


@pytest.mark.parametrize("renderer", ["walk", "gfm"])
def test_local_images_are_inlined(tmp_path, renderer):
    (tmp_path / "pic.png").write_bytes(b"0123456789")
    page = RenderPipeline(renderer).render_page(
        "![local](pic.png) ![remote](https://x/y.png)", tmp_path
    )
    match = re.search(r'src="data:image/png;base64,([^"]+)"', page)
    assert match
    assert base64.b64decode(match.group(1)) == b"0123456789"
    assert 'src="https://x/y.png"' in page


def test_gfm_renderer_selected():
    pipeline = RenderPipeline("gfm")
    assert "<table>" in pipeline.render_fragment("| a |\n| - |\n| 1 |\n")
    assert "<table>" not in RenderPipeline("walk").render_fragment("| a |\n| - |\n| 1 |\n")


def test_unknown_renderer_rejected():
    with pytest.raises(ValueError):
        RenderPipeline("pandoc")
