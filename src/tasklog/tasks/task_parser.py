# src/tasklog/tasks/task_parser.py

"""
Stateless scanner: raw log text -> Sections of Tasks with nested Notes.

Only the trailing `window` lines are parsed so cost stays bounded on logs that
grow forever. Line numbers on the returned objects are absolute (relative to the
whole document), so writers can address lines of the content they just parsed.

Note: get_today_section_text() looks at the whole document while parse_log()
only looks at the window. On a log longer than the window a task can show up in
"today" but still be unreachable by id.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence

from ..errors import DuplicateTaskError, TaskNotFoundError
from .task_models import LineKind, Note, ParsedLine, Section, Task

HEADER_RE = re.compile(r"^### (.+)$")
TASK_RE = re.compile(r"^(\s*)- \[([ x])\] ([a-z][a-z0-9]*)-([0-9]+) (.+)$")
NOTE_RE = re.compile(r"^(\s+)- (.+)$")

_BLANK = ParsedLine(kind=LineKind.BLANK)
_OTHER = ParsedLine(kind=LineKind.OTHER)


def split_lines(content: str) -> list[str]:
    """Split on newlines only, dropping one trailing carriage return per line.

    Unlike str.splitlines(), form feeds, NEL and U+2028 stay inside their line.
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def classify_line(line: str) -> ParsedLine:
    m = HEADER_RE.match(line)
    if m:
        return ParsedLine(kind=LineKind.HEADER, text=m.group(1).strip())

    m = TASK_RE.match(line)
    if m:
        return ParsedLine(
            kind=LineKind.TASK,
            indent=m.group(1),
            done=m.group(2) == "x",
            tag=m.group(3),
            number=int(m.group(4)),
            text=m.group(5),
        )

    m = NOTE_RE.match(line)
    if m:
        return ParsedLine(kind=LineKind.NOTE, indent=m.group(1), text=m.group(2))

    if not line.strip():
        return _BLANK
    return _OTHER


def header_date(line: str) -> str | None:
    parsed = classify_line(line)
    return parsed.text if parsed.kind is LineKind.HEADER else None


def parse_log(content: str, window: int) -> list[Section]:
    lines = split_lines(content)
    offset = max(0, len(lines) - max(0, window))

    sections: list[Section] = []
    current: Task | None = None
    current_date = ""

    def flush() -> None:
        nonlocal current
        if current is None:
            return
        if not sections:
            # Task above the first header in the window (or no header at all).
            sections.append(Section(date=""))
        sections[-1].tasks.append(current)
        current = None

    for i, line in enumerate(lines[offset:]):
        abs_line = offset + i
        parsed = classify_line(line)

        if parsed.kind is LineKind.HEADER:
            flush()
            current_date = parsed.text
            sections.append(Section(date=current_date))
            continue

        if parsed.kind is LineKind.TASK:
            flush()
            current = Task(
                line_number=abs_line,
                indent=parsed.indent,
                done=parsed.done,
                tag=parsed.tag,
                number=parsed.number,
                title=parsed.text,
                date=current_date,
            )
            continue

        if parsed.kind is LineKind.NOTE:
            if current is not None and len(parsed.indent) > len(current.indent):
                current.notes.append(Note(line_number=abs_line, text=parsed.text))
                continue
            # Indented bullet that does not belong to the open task.
            flush()
            continue

        if parsed.kind is LineKind.OTHER:
            flush()

    flush()
    return sections


def iter_tasks(sections: Iterable[Section]) -> Iterator[Task]:
    for section in sections:
        yield from section.tasks


def find_task(sections: Sequence[Section], task_id: str) -> Task:
    found = [task for task in iter_tasks(sections) if task.id == task_id]
    if not found:
        raise TaskNotFoundError(task_id)
    if len(found) > 1:
        raise DuplicateTaskError(task_id)
    return found[0]


def max_number_for_tag(sections: Sequence[Section], tag: str) -> int:
    return max((task.number for task in iter_tasks(sections) if task.tag == tag), default=0)


def search_tasks(sections: Sequence[Section], query: str, tag: str | None = None) -> list[Task]:
    """Case-insensitive substring match on title, note text, tag and id."""
    needle = query.lower()
    results: list[Task] = []
    for task in iter_tasks(sections):
        if tag is not None and task.tag != tag:
            continue
        if (
            needle in task.title.lower()
            or any(needle in note.text.lower() for note in task.notes)
            or needle in task.tag.lower()
            or needle in task.id.lower()
        ):
            results.append(task)
    return results


def find_last_section(content: str) -> tuple[int, str] | None:
    """Line index and date of the last header in the whole document."""
    lines = split_lines(content)
    for i in range(len(lines) - 1, -1, -1):
        date = header_date(lines[i])
        if date is not None:
            return i, date
    return None


def find_section_end(lines: Sequence[str], header_index: int) -> int:
    """Index of the next header after header_index, or len(lines)."""
    for i in range(header_index + 1, len(lines)):
        if header_date(lines[i]) is not None:
            return i
    return len(lines)


def get_today_section_text(content: str, today: str) -> str | None:
    lines = split_lines(content)
    start: int | None = None
    for i, line in enumerate(lines):
        if header_date(line) == today:
            start = i
    if start is None:
        return None
    end = find_section_end(lines, start)
    return "\n".join(lines[start:end])
