# src/tasklog/storage/counter_store.py

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..errors import FormatError, NotInitializedError
from .atomic import atomic_write, read_text

logger = logging.getLogger(__name__)


class CounterStore:
    """
    Persisted tag -> highest assigned number map (the ID allocator).

    Counters only ever go up. Callers mutate it inside the lock's critical
    section and call save() before releasing the lock.
    """

    def __init__(self, path: str | Path, counters: dict[str, int] | None = None) -> None:
        self.path = Path(path)
        self.counters: dict[str, int] = dict(counters or {})
        self.dirty = False

    @classmethod
    def load(cls, path: str | Path) -> CounterStore:
        path = Path(path)
        if not path.exists():
            raise NotInitializedError()

        raw = read_text(path)
        if not raw.strip():
            return cls(path)

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise FormatError(f"State error: {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise FormatError(f"State error: {path}: expected a JSON object")

        counters: dict[str, int] = {}
        for tag, value in data.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise FormatError(f"State error: {path}: counter for {tag!r} is not a non-negative integer")
            counters[str(tag)] = value
        return cls(path, counters)

    def get(self, tag: str) -> int:
        return self.counters.get(tag, 0)

    def next_id(self, tag: str) -> int:
        value = self.counters.get(tag, 0) + 1
        self.counters[tag] = value
        self.dirty = True
        return value

    def sync_min(self, tag: str, minimum: int) -> bool:
        """Raise the counter for tag to at least minimum. Returns True if it moved."""
        current = self.counters.get(tag, 0)
        if current >= minimum:
            return False
        self.counters[tag] = minimum
        self.dirty = True
        logger.info("Counter for tag=%s raised %d -> %d to match the log", tag, current, minimum)
        return True

    def to_json(self) -> str:
        return json.dumps(self.counters, ensure_ascii=False, indent=2, sort_keys=True) + "\n"

    def save(self) -> None:
        atomic_write(self.path, self.to_json())
        self.dirty = False
