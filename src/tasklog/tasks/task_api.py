# src/tasklog/tasks/task_api.py

"""
Convenience helpers for front-ends.

Front-ends (CLI, and any future UI or tool server) call these or TaskLog
directly; none of them touch the log, counters or lock on their own.
"""

from __future__ import annotations

from ..config import Settings
from .task_log import TaskLog
from .task_models import Task

NOTE_RENDER_INDENT = " " * 6


def open_log(settings: Settings | None = None) -> TaskLog:
    return TaskLog(settings)


def format_task(task: Task, *, with_notes: bool = True) -> str:
    status = "x" if task.done else " "
    lines = [f"[{status}] {task.id} {task.title}"]
    if with_notes:
        lines.extend(f"{NOTE_RENDER_INDENT}- {note.text}" for note in task.notes)
    return "\n".join(lines)


def format_tasks(tasks: list[Task], *, with_notes: bool = True) -> str:
    return "\n".join(format_task(t, with_notes=with_notes) for t in tasks)


def search_text(log: TaskLog, query: str, tag: str | None = None) -> str:
    tasks = log.search(query, tag=tag)
    if not tasks:
        return f'no tasks found matching "{query}"'
    return format_tasks(tasks)
