# src/tasklog/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class LineKind(StrEnum):
    """
    Classification of one log line.

    Rules are tried in this priority order: header, task, note, then the
    fallbacks blank/other.
    """

    HEADER = "header"
    TASK = "task"
    NOTE = "note"
    BLANK = "blank"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ParsedLine:
    kind: LineKind
    indent: str = ""
    text: str = ""  # header date, task title or note text

    # task lines only
    done: bool = False
    tag: str = ""
    number: int = 0


@dataclass(frozen=True, slots=True)
class Note:
    line_number: int
    text: str


@dataclass(slots=True)
class Task:
    # Absolute 0-based index into the document this task was parsed from.
    line_number: int
    indent: str
    done: bool
    tag: str
    number: int
    title: str
    date: str
    notes: list[Note] = field(default_factory=list)

    @property
    def id(self) -> str:
        return f"{self.tag}-{self.number}"

    @property
    def last_line_number(self) -> int:
        return self.notes[-1].line_number if self.notes else self.line_number


@dataclass(slots=True)
class Section:
    date: str
    tasks: list[Task] = field(default_factory=list)
