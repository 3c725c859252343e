# tests/conftest.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from tasklog.config import Settings
from tasklog.tasks.task_log import TaskLog

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings rooted in a per-test home directory.

    We build them explicitly rather than reading TL_HOME so tests never touch
    the real ~/.config/tl.
    """
    return Settings(log_level="WARNING", file_logging=False, home=tmp_path / "home")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def task_log(settings: Settings, clock: FakeClock) -> TaskLog:
    """Initialized TaskLog with a fixed clock (today == 18/10/2026)."""
    log = TaskLog(settings, clock=clock)
    log.init()
    return log


@pytest.fixture()
def log_path(task_log: TaskLog) -> Path:
    return task_log.settings.home / "log.md"


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """cli.main.main() reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
