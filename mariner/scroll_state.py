"""Per-document scroll offsets that survive restarts."""

from __future__ import annotations

import json
import logging
import math
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def _key(doc_path: Path | str) -> str:
    return str(Path(doc_path).expanduser().absolute())


def _sanitize(offset) -> float:
    try:
        value = float(offset)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


class ScrollStateStore:
    """JSON-backed map of absolute document path to vertical scroll offset.

    Offsets are a convenience, so a missing or corrupt state file just
    starts an empty table. ``set`` only touches memory; ``flush`` writes
    the whole table atomically and must run before the process exits.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._offsets: dict[str, float] = {}
        self._dirty = False
        self._load()

    def _load(self) -> None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning("Could not read scroll state %s: %s", self.path, e)
            return

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Ignoring corrupt scroll state %s: %s", self.path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring scroll state %s: expected an object", self.path)
            return

        self._offsets = {str(k): _sanitize(v) for k, v in data.items()}

    def get(self, doc_path: Path | str) -> float:
        return self._offsets.get(_key(doc_path), 0.0)

    def set(self, doc_path: Path | str, offset: float) -> None:
        key = _key(doc_path)
        value = _sanitize(offset)
        if self._offsets.get(key) != value:
            self._offsets[key] = value
            self._dirty = True

    def flush(self) -> None:
        if not self._dirty:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".scroll-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._offsets, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._dirty = False
        logger.debug("Wrote %d scroll offsets to %s", len(self._offsets), self.path)
