"""Tests for DocumentLoader's retry discipline."""
import asyncio

import pytest

from mariner.errors import ReadFailed
from mariner.loader import DocumentLoader


class ScriptedReader:
    """Fails ``failures`` times, then returns ``text``."""

    def __init__(self, failures, text="content", error=OSError("busy")):
        self.failures = failures
        self.text = text
        self.error = error
        self.calls = 0

    def __call__(self, path):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.text


@pytest.fixture
def delays(monkeypatch):
    recorded = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


def test_reads_on_first_attempt(tmp_path, delays):
    reader = ScriptedReader(0, "hello")
    loader = DocumentLoader(reader=reader)

    assert asyncio.run(loader.load(tmp_path / "doc.md")) == "hello"
    assert reader.calls == 1
    assert delays == []


def test_recovers_from_transient_failures(tmp_path, delays):
    reader = ScriptedReader(2, "later")
    loader = DocumentLoader(reader=reader)

    assert asyncio.run(loader.load(tmp_path / "doc.md")) == "later"
    assert reader.calls == 3
    assert delays == pytest.approx([0.05, 0.10])


def test_gives_up_after_four_attempts(tmp_path, delays):
    reader = ScriptedReader(100)
    loader = DocumentLoader(reader=reader)

    with pytest.raises(ReadFailed) as exc_info:
        asyncio.run(loader.load(tmp_path / "doc.md"))

    assert reader.calls == 4
    assert exc_info.value.attempts == 4
    assert exc_info.value.path == tmp_path / "doc.md"
    assert delays == pytest.approx([0.05, 0.10, 0.15])


def test_decode_errors_are_retried(tmp_path, delays):
    error = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
    reader = ScriptedReader(1, "ok", error=error)

    assert asyncio.run(DocumentLoader(reader=reader).load(tmp_path / "doc.md")) == "ok"
    assert reader.calls == 2


def test_custom_retry_policy(tmp_path, delays):
    reader = ScriptedReader(100)
    loader = DocumentLoader(max_retries=1, retry_step=0.2, reader=reader)

    with pytest.raises(ReadFailed):
        asyncio.run(loader.load(tmp_path / "doc.md"))
    assert reader.calls == 2
    assert delays == pytest.approx([0.2])


def test_reads_real_files(tmp_path):
    path = tmp_path / "doc.md"
    path.write_text("héllo\n", encoding="utf-8")
    assert asyncio.run(DocumentLoader().load(path)) == "héllo\n"


def test_missing_file_fails(tmp_path):
    loader = DocumentLoader(retry_step=0.001)
    with pytest.raises(ReadFailed):
        asyncio.run(loader.load(tmp_path / "absent.md"))


def test_invalid_utf8_fails(tmp_path):
    path = tmp_path / "doc.md"
    path.write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(ReadFailed):
        asyncio.run(DocumentLoader(retry_step=0.001).load(path))
