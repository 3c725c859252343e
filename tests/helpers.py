# tests/helpers.py

from __future__ import annotations

from pathlib import Path

TODAY = "18/10/2026"
STAMP = "18/10/2026 09:05AM"


def write_log(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def read_log(path: Path) -> str:
    return path.read_text(encoding="utf-8")
