# src/tasklog/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..errors import ValidationError
from ..tasks.task_api import format_tasks, search_text
from ..tasks.task_log import TaskLog

CommandHandler = Callable[[TaskLog, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Subcommand registry used by the `tl` entry point (tl add ..., tl done ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, log: TaskLog, argv: list[str]) -> str:
        """
        Run `argv[0]` with the remaining arguments and return its output.
        Errors propagate as TaskLogError so the caller can pick an exit code.
        """
        if not argv:
            return self.build_help()

        name = argv[0].lower()
        handler = self._handlers.get(name)
        if not handler:
            raise ValidationError(f"Unknown command: {name}. Use `tl help` to list available commands.")

        logger.debug("Dispatching command=%s args=%s", name, argv[1:])
        return handler(log, argv[1:])

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _take_option(args: list[str], flag: str) -> tuple[str | None, list[str]]:
    """Remove `flag VALUE` (or `flag=VALUE`) from args."""
    rest: list[str] = []
    value: str | None = None
    it = iter(args)
    for arg in it:
        if arg == flag:
            value = next(it, None)
            if value is None:
                raise ValidationError(f"{flag} requires a value")
        elif arg.startswith(flag + "="):
            value = arg[len(flag) + 1 :]
        else:
            rest.append(arg)
    return value, rest


def _take_flag(args: list[str], flag: str) -> tuple[bool, list[str]]:
    rest = [a for a in args if a != flag]
    return len(rest) != len(args), rest


def cmd_help(log: TaskLog, args: list[str]) -> str:
    return registry.build_help()


def cmd_init(log: TaskLog, args: list[str]) -> str:
    log_path, _ = _take_option(args, "--log")
    config = log.init(log_path)
    return f"initialized at {log.settings.home}\nlog file: {config.resolved_log_path}"


def cmd_add(log: TaskLog, args: list[str]) -> str:
    if not args:
        raise ValidationError("Usage: tl add <tag> <title>")
    tag, title = args[0], " ".join(args[1:])
    if not title:
        raise ValidationError("title cannot be empty")
    task_id = log.add_task(tag, title)
    return f"created {task_id}"


def cmd_done(log: TaskLog, args: list[str]) -> str:
    if len(args) != 1:
        raise ValidationError("Usage: tl done <id>")
    log.complete_task(args[0])
    return f"completed {args[0]}"


def cmd_note(log: TaskLog, args: list[str]) -> str:
    if not args:
        raise ValidationError("Usage: tl note <id> <text>")
    task_id, text = args[0], " ".join(args[1:])
    if not text:
        raise ValidationError("note text cannot be empty")
    log.add_note(task_id, text)
    return f"noted on {task_id}"


def cmd_search(log: TaskLog, args: list[str]) -> str:
    tag, rest = _take_option(args, "--tag")
    query = " ".join(rest)
    if not query:
        raise ValidationError("search query cannot be empty")
    return search_text(log, query, tag=tag)


def cmd_today(log: TaskLog, args: list[str]) -> str:
    return log.get_today()


def cmd_list(log: TaskLog, args: list[str]) -> str:
    only_open, _ = _take_flag(args, "--open")
    tasks = log.list_tasks(include_done=not only_open)
    if not tasks:
        return "no tasks"
    return format_tasks(tasks, with_notes=False)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("init", cmd_init, help_text="Create config, log and state: init [--log PATH].")
registry.register("add", cmd_add, help_text="Add a task: add <tag> <title>.")
registry.register("done", cmd_done, help_text="Mark a task as done: done <id>.")
registry.register("note", cmd_note, help_text="Add a note to a task: note <id> <text>.")
registry.register("search", cmd_search, help_text="Search tasks and notes: search <query> [--tag TAG].")
registry.register("today", cmd_today, help_text="Show today's section.")
registry.register("list", cmd_list, help_text="List tasks in the scan window: list [--open].", aliases=["ls"])
