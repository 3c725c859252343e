# src/tasklog/storage/atomic.py

"""
Crash-safe whole-file replacement.

Write to a sibling temp file, fsync, then os.replace() over the target.
Readers see either the old or the new file, never a partial one.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from ..errors import StorageError

logger = logging.getLogger(__name__)


def atomic_write(path: str | Path, text: str) -> None:
    path = Path(path)
    directory = path.parent
    tmp_name: str | None = None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=directory,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise StorageError(f"IO error: failed to write {path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)

    logger.debug("atomic_write path=%s bytes=%d", path, len(text.encode("utf-8")))


def read_text(path: str | Path) -> str:
    path = Path(path)
    try:
        # newline="" keeps the file's own line endings so rewrites stay faithful.
        with open(path, encoding="utf-8", newline="") as fh:
            return fh.read()
    except OSError as exc:
        raise StorageError(f"IO error: failed to read {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise StorageError(f"IO error: {path} is not valid UTF-8: {exc}") from exc
