# src/tasklog/tasks/task_log.py

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..config import Config, Settings, get_settings, load_config, save_config
from ..errors import NotInitializedError, TaskAlreadyDoneError, TaskLogError, ValidationError
from ..storage.atomic import atomic_write, read_text
from ..storage.counter_store import CounterStore
from ..storage.file_lock import FileLock
from . import task_parser
from .task_models import Task

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"[a-z][a-z0-9]*")

# Every separator str.splitlines() honours; none may appear inside one record.
_LINE_BREAKS = frozenset("\n\r\x0b\x0c\x1c\x1d\x1e\x85\u2028\u2029")

Clock = Callable[[], datetime]


def _join_lines(lines: list[str]) -> str:
    return "\n".join(lines) + "\n"


def _require_text(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{what} cannot be empty")
    if any(ch in _LINE_BREAKS for ch in value):
        raise ValidationError(f"{what} must be a single line")
    return value


def validate_tag(tag: str) -> str:
    if not tag or not TAG_RE.fullmatch(tag):
        raise ValidationError("tag must be lowercase alphanumeric and start with a letter")
    return tag


def ensure_today_section(content: str, today: str) -> str:
    """Append a `### today` header unless the last header already is today."""
    last = task_parser.find_last_section(content)
    if last is not None and last[1] == today:
        return content

    out = content
    if out and not out.endswith("\n"):
        out += "\n"
    if out:
        out += "\n"
    return out + f"### {today}\n"


@dataclass(slots=True)
class _Session:
    """Everything loaded inside one locked critical section."""

    config: Config
    counters: CounterStore
    log_path: Path
    content: str


class TaskLog:
    """
    Read-modify-write engine over the shared log file.

    Every mutating operation runs the same template:
      lock -> load config + counters -> re-read log -> parse -> change
      -> atomic write of the full document -> save counters -> unlock

    Line numbers are never reused across calls: each operation parses the
    content it just read under the lock.

    Read-only operations (get_today/search/list_tasks) skip the lock; writers
    replace the file atomically so readers never see a torn document.
    """

    def __init__(self, settings: Settings | None = None, *, clock: Clock | None = None) -> None:
        self.settings = settings or get_settings()
        self._clock: Clock = clock or datetime.now
        self._lock = FileLock(self.settings.lock_path)

    # ---- low-level helpers ----

    def _today(self, config: Config) -> str:
        return self._clock().strftime(config.date_pattern)

    def _stamp(self, config: Config) -> str:
        return self._clock().strftime(config.timestamp_pattern)

    def _read_log(self, config: Config) -> tuple[Path, str]:
        log_path = config.resolved_log_path
        if not log_path.exists():
            raise NotInitializedError(f"Not initialized: log file {log_path} is missing. Run `tl init` first.")
        return log_path, read_text(log_path)

    @contextmanager
    def _session(self) -> Iterator[_Session]:
        with self._lock.acquire():
            config = load_config(self.settings)
            counters = CounterStore.load(self.settings.state_path)
            log_path, content = self._read_log(config)
            yield _Session(config=config, counters=counters, log_path=log_path, content=content)

    @staticmethod
    def _commit(session: _Session, new_content: str) -> None:
        # Log first: if we die before the counters are saved, the next add_task
        # reconciles the counter from the log.
        if new_content != session.content:
            atomic_write(session.log_path, new_content)
        if session.counters.dirty:
            session.counters.save()

    # ---- mutating operations ----

    def add_task(self, tag: str, title: str) -> str:
        validate_tag(tag)
        _require_text(title, "title")

        with self._session() as s:
            content = ensure_today_section(s.content, self._today(s.config))
            sections = task_parser.parse_log(content, s.config.scan_window_lines)

            s.counters.sync_min(tag, task_parser.max_number_for_tag(sections, tag))
            task_id = f"{tag}-{s.counters.next_id(tag)}"

            last = task_parser.find_last_section(content)
            if last is None:
                raise TaskLogError("no section found in log")
            lines = task_parser.split_lines(content)
            section_end = task_parser.find_section_end(lines, last[0])
            lines.insert(section_end, f"- [ ] {task_id} {title}")

            self._commit(s, _join_lines(lines))

        logger.info("Task added id=%s", task_id)
        return task_id

    def complete_task(self, task_id: str) -> None:
        with self._session() as s:
            sections = task_parser.parse_log(s.content, s.config.scan_window_lines)
            task = task_parser.find_task(sections, task_id)
            if task.done:
                raise TaskAlreadyDoneError(task_id)

            lines = task_parser.split_lines(s.content)
            line = lines[task.line_number].replace("[ ]", "[x]", 1)
            lines[task.line_number] = f"{line} ({self._stamp(s.config)})"

            self._commit(s, _join_lines(lines))

        logger.info("Task completed id=%s", task_id)

    def add_note(self, task_id: str, text: str) -> None:
        _require_text(text, "note text")

        with self._session() as s:
            sections = task_parser.parse_log(s.content, s.config.scan_window_lines)
            task = task_parser.find_task(sections, task_id)

            indent = " " * s.config.note_indent
            lines = task_parser.split_lines(s.content)
            lines.insert(task.last_line_number + 1, f"{indent}- [{self._stamp(s.config)}] {text}")

            self._commit(s, _join_lines(lines))

        logger.info("Note added id=%s", task_id)

    def init(self, log_override: str | None = None) -> Config:
        """
        Idempotent setup of config, counter store and log.

        With an existing config, log_override replaces only the log path.
        """
        settings = self.settings
        settings.home.mkdir(parents=True, exist_ok=True)

        with self._lock.acquire():
            if not settings.config_path.exists():
                config = Config.default(settings)
                if log_override:
                    config = config.with_log_path(log_override)
                save_config(settings, config)
                logger.info("Config created path=%s", settings.config_path)
            elif log_override:
                config = load_config(settings).with_log_path(log_override)
                save_config(settings, config)
                logger.info("Config log_path updated to %s", log_override)

            if not settings.state_path.exists():
                CounterStore(settings.state_path).save()

            config = load_config(settings)
            log_path = config.resolved_log_path
            today = self._today(config)

            content = read_text(log_path) if log_path.exists() else ""
            if not content.strip():
                atomic_write(log_path, f"### {today}\n")
                logger.info("Log created path=%s", log_path)
            else:
                updated = ensure_today_section(content, today)
                if updated != content:
                    atomic_write(log_path, updated)

        return config

    # ---- read-only operations ----

    def get_today(self) -> str:
        config = load_config(self.settings)
        _, content = self._read_log(config)
        text = task_parser.get_today_section_text(content, self._today(config))
        if text is None:
            raise TaskLogError("no section for today found")
        return text

    def search(self, query: str, tag: str | None = None) -> list[Task]:
        if not query or not query.strip():
            raise ValidationError("search query cannot be empty")
        config = load_config(self.settings)
        _, content = self._read_log(config)
        sections = task_parser.parse_log(content, config.scan_window_lines)
        return task_parser.search_tasks(sections, query, tag=tag)

    def list_tasks(self, *, include_done: bool = True) -> list[Task]:
        config = load_config(self.settings)
        _, content = self._read_log(config)
        sections = task_parser.parse_log(content, config.scan_window_lines)
        return [t for t in task_parser.iter_tasks(sections) if include_done or not t.done]
