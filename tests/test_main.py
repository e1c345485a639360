"""Tests for the command line and the terminal host."""
import asyncio
import json

import pytest

from mariner.config import Settings
from mariner.main import MarinerApp, build_parser, main
from mariner.models import DocumentState
from mariner.widgets import HtmlPreview


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    for name in ("MARINER_RENDERER", "MARINER_DEBOUNCE_MS", "MARINER_STATE_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_once_writes_page(isolated_env, doc_path):
    output = isolated_env / "out" / "doc.html"
    state = isolated_env / "scroll.json"

    code = main([str(doc_path), "--once", "-o", str(output), "--state-file", str(state)])

    assert code == 0
    page = output.read_text(encoding="utf-8")
    assert "<h1>Title</h1>" in page
    assert str(doc_path) in json.loads(state.read_text(encoding="utf-8"))


def test_once_defaults_to_html_beside_document(isolated_env, doc_path):
    code = main([str(doc_path), "--once", "--renderer", "gfm",
                 "--state-file", str(isolated_env / "scroll.json")])
    assert code == 0
    assert "<h1>Title</h1>" in doc_path.with_suffix(".html").read_text(encoding="utf-8")


def test_once_reports_unreadable_document(isolated_env):
    output = isolated_env / "out.html"
    code = main([str(isolated_env / "absent.md"), "--once", "-o", str(output),
                 "--state-file", str(isolated_env / "scroll.json")])
    assert code == 1
    assert "Could not read file" in output.read_text(encoding="utf-8")


def test_parser_options():
    args = build_parser().parse_args(["doc.md", "--renderer", "gfm", "--debounce-ms", "250", "--polling"])
    assert args.renderer == "gfm"
    assert args.debounce_ms == 250
    assert args.polling is True
    assert build_parser().parse_args(["doc.md"]).polling is None


def test_app_shows_page_and_reloads(tmp_path, doc_path):
    settings = Settings(debounce=0.05, retry_step=0.01, state_file=tmp_path / "scroll.json")
    app = MarinerApp(doc_path, settings)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            viewer = app.query_one(HtmlPreview)
            assert "<h1>Title</h1>" in viewer.html
            assert app.controller.document.state is DocumentState.DISPLAYED

            doc_path.write_text("# Second\n", encoding="utf-8")
            await pilot.press("r")
            await pilot.pause(0.2)
            await app.controller.wait_idle()
            await pilot.pause()
            assert "<h1>Second</h1>" in viewer.html

            await pilot.press("q")

    asyncio.run(scenario())
    assert app.controller.closed
    assert str(doc_path) in json.loads(settings.state_file.read_text(encoding="utf-8"))


def test_exit_without_quit_action_saves_live_offset(tmp_path, doc_path):
    settings = Settings(debounce=0.05, retry_step=0.01, state_file=tmp_path / "scroll.json")
    app = MarinerApp(doc_path, settings)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            viewer = app.query_one(HtmlPreview)
            viewer.scroll_to(y=5, animate=False)
            await pilot.pause()
            offset = viewer.scroll_y
            app.exit()
            return offset

    offset = asyncio.run(scenario())
    assert offset > 0
    assert app.controller.closed
    saved = json.loads(settings.state_file.read_text(encoding="utf-8"))
    assert saved[str(doc_path)] == offset
