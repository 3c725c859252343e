# src/tasklog/errors.py

"""
Error taxonomy.

Every front-end prints str(exc) verbatim, so messages are written for the user.
"""

from __future__ import annotations


class TaskLogError(Exception):
    """Base class for every error surfaced to callers."""


class ValidationError(TaskLogError):
    """Malformed tag, empty title/text/query."""


class TaskNotFoundError(TaskLogError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class DuplicateTaskError(TaskLogError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Duplicate task ID: {task_id}")
        self.task_id = task_id


class TaskAlreadyDoneError(TaskLogError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"task {task_id} is already done")
        self.task_id = task_id


class NotInitializedError(TaskLogError):
    def __init__(self, message: str = "Not initialized. Run `tl init` first.") -> None:
        super().__init__(message)


class LockError(TaskLogError):
    pass


class StorageError(TaskLogError):
    """Filesystem read/write failure."""


class FormatError(TaskLogError):
    """Corrupt config or counter store."""
