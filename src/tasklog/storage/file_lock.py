# src/tasklog/storage/file_lock.py

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from ..errors import LockError

logger = logging.getLogger(__name__)


class FileLock:
    """
    Cross-process exclusive advisory lock on a single lock file.

    Usage:
        with FileLock(path).acquire():
            ...  # read-modify-write

    - acquire() blocks until the lock is granted (no timeout).
    - not re-entrant: a second acquire from any process, this one included, waits.
    - leaving the with-block releases the lock on every exit path.
    """

    def __init__(self, lock_path: str | Path) -> None:
        self.lock_path = Path(lock_path)

    @contextmanager
    def acquire(self) -> Iterator[IO[str]]:
        try:
            import fcntl  # type: ignore
        except ModuleNotFoundError as exc:
            raise LockError("Lock error: file locks require fcntl (not available on this platform).") from exc

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = self.lock_path.open("a+", encoding="utf-8")
        except OSError as exc:
            raise LockError(f"Lock error: cannot open {self.lock_path}: {exc}") from exc

        try:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            except OSError as exc:
                raise LockError(f"Lock error: failed to acquire lock: {exc}") from exc
            logger.debug("Lock acquired path=%s", self.lock_path)
            try:
                yield handle
            finally:
                with contextlib.suppress(OSError):
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                logger.debug("Lock released path=%s", self.lock_path)
        finally:
            handle.close()
