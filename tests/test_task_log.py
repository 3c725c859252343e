# tests/test_task_log.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tasklog.config import Config, Settings, save_config
from tasklog.errors import (
    DuplicateTaskError,
    NotInitializedError,
    TaskAlreadyDoneError,
    TaskLogError,
    TaskNotFoundError,
    ValidationError,
)
from tasklog.tasks.task_log import TaskLog, ensure_today_section
from tasklog.tasks.task_parser import find_task, parse_log

from .fakes import FakeClock
from .helpers import STAMP, TODAY, read_log, write_log


def _counters(settings: Settings) -> dict[str, int]:
    return json.loads(settings.state_path.read_text(encoding="utf-8"))


def test_init_creates_config_state_and_log(task_log: TaskLog, log_path: Path) -> None:
    settings = task_log.settings
    assert settings.config_path.exists()
    assert _counters(settings) == {}
    assert read_log(log_path) == f"### {TODAY}\n"


def test_init_is_idempotent(task_log: TaskLog, log_path: Path) -> None:
    task_log.add_task("osv", "one")
    before = read_log(log_path)
    task_log.init()
    assert read_log(log_path) == before
    assert _counters(task_log.settings) == {"osv": 1}


def test_init_appends_today_header_to_existing_log(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, "### 01/01/2024\n- [ ] osv-1 rotate keys")
    task_log.init()
    assert read_log(log_path) == f"### 01/01/2024\n- [ ] osv-1 rotate keys\n\n### {TODAY}\n"


def test_init_rewrites_whitespace_only_log(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, "  \n\n\t\n")
    task_log.init()
    assert read_log(log_path) == f"### {TODAY}\n"


def test_init_log_override_updates_only_log_path(settings: Settings, clock: FakeClock, tmp_path: Path) -> None:
    settings.home.mkdir(parents=True)
    save_config(settings, Config(log_path=str(settings.default_log_path), date_format="YYYY-MM-DD", note_indent=4))
    other = tmp_path / "elsewhere" / "work.md"

    config = TaskLog(settings, clock=clock).init(str(other))

    assert config.log_path == str(other)
    assert config.date_format == "YYYY-MM-DD"
    assert config.note_indent == 4
    assert read_log(other) == "### 2026-10-18\n"


def test_operations_require_init(settings: Settings, clock: FakeClock) -> None:
    log = TaskLog(settings, clock=clock)
    with pytest.raises(NotInitializedError):
        log.add_task("osv", "x")
    with pytest.raises(NotInitializedError):
        log.get_today()


def test_add_task_numbers_start_at_one_and_increase(task_log: TaskLog, log_path: Path) -> None:
    ids = [task_log.add_task("osv", f"task {i}") for i in range(3)]
    assert ids == ["osv-1", "osv-2", "osv-3"]
    assert task_log.add_task("infra", "other tag") == "infra-1"
    assert read_log(log_path) == (
        f"### {TODAY}\n"
        "- [ ] osv-1 task 0\n"
        "- [ ] osv-2 task 1\n"
        "- [ ] osv-3 task 2\n"
        "- [ ] infra-1 other tag\n"
    )
    assert _counters(task_log.settings) == {"infra": 1, "osv": 3}


def test_add_task_reconciles_with_untracked_tasks(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, f"### {TODAY}\n- [ ] foo-7 added by hand\n")
    assert task_log.add_task("foo", "generated") == "foo-8"
    assert _counters(task_log.settings)["foo"] == 8


def test_counter_never_goes_down(task_log: TaskLog, log_path: Path) -> None:
    task_log.add_task("osv", "a")
    task_log.add_task("osv", "b")
    # Tasks removed from the log by hand do not free their numbers.
    write_log(log_path, f"### {TODAY}\n")
    assert task_log.add_task("osv", "c") == "osv-3"


def test_add_task_on_a_later_date_appends_header(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, "### 01/01/2024\n- [ ] osv-1 rotate keys\n")
    assert task_log.add_task("osv", "patch cve") == "osv-2"
    assert read_log(log_path) == (
        "### 01/01/2024\n"
        "- [ ] osv-1 rotate keys\n"
        "\n"
        f"### {TODAY}\n"
        "- [ ] osv-2 patch cve\n"
    )


def test_add_task_crossing_midnight(task_log: TaskLog, clock: FakeClock, log_path: Path) -> None:
    task_log.add_task("osv", "yesterday")
    clock.advance(days=1)
    task_log.add_task("osv", "today")
    assert read_log(log_path) == (
        f"### {TODAY}\n"
        "- [ ] osv-1 yesterday\n"
        "\n"
        "### 19/10/2026\n"
        "- [ ] osv-2 today\n"
    )


@pytest.mark.parametrize("tag", ["", "OSV", "os-v", "os v", "émoji", "1osv", "osv\n"])
def test_add_task_rejects_bad_tags(task_log: TaskLog, log_path: Path, tag: str) -> None:
    before = read_log(log_path)
    with pytest.raises(ValidationError, match="lowercase alphanumeric"):
        task_log.add_task(tag, "title")
    assert read_log(log_path) == before


def test_add_task_rejects_blank_or_multiline_title(task_log: TaskLog) -> None:
    with pytest.raises(ValidationError):
        task_log.add_task("osv", "   ")
    with pytest.raises(ValidationError):
        task_log.add_task("osv", "two\nlines")


@pytest.mark.parametrize("text", ["a\u2028b", "a\x85b", "a\x0cb", "a\rb"])
def test_text_with_any_line_separator_is_rejected(task_log: TaskLog, log_path: Path, text: str) -> None:
    task_log.add_task("osv", "first")
    before = read_log(log_path)
    with pytest.raises(ValidationError, match="single line"):
        task_log.add_task("osv", text)
    with pytest.raises(ValidationError, match="single line"):
        task_log.add_note("osv-1", text)
    assert read_log(log_path) == before


def test_hand_written_form_feed_survives_rewrites(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, f"### {TODAY}\nprose\x0cwith form feed\n- [ ] osv-1 a\n")
    task_log.add_task("osv", "t")
    task_log.complete_task("osv-1")
    assert read_log(log_path) == (
        f"### {TODAY}\n"
        "prose\x0cwith form feed\n"
        f"- [x] osv-1 a ({STAMP})\n"
        "- [ ] osv-2 t\n"
    )


def test_complete_task_marks_line_and_stamps(task_log: TaskLog, log_path: Path) -> None:
    task_log.add_task("osv", "rotate keys")
    task_log.add_task("osv", "other")
    task_log.complete_task("osv-1")
    assert read_log(log_path) == (
        f"### {TODAY}\n"
        f"- [x] osv-1 rotate keys ({STAMP})\n"
        "- [ ] osv-2 other\n"
    )


def test_complete_already_done_fails_and_leaves_file_identical(task_log: TaskLog, log_path: Path) -> None:
    task_log.add_task("osv", "rotate keys")
    task_log.complete_task("osv-1")
    before = log_path.read_bytes()

    with pytest.raises(TaskAlreadyDoneError, match="already done"):
        task_log.complete_task("osv-1")
    assert log_path.read_bytes() == before


def test_complete_unknown_and_duplicate_ids(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, f"### {TODAY}\n- [ ] osv-1 a\n- [ ] osv-1 b\n")
    with pytest.raises(TaskNotFoundError):
        task_log.complete_task("osv-2")
    with pytest.raises(DuplicateTaskError):
        task_log.complete_task("osv-1")


def test_complete_only_touches_the_task_line(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, f"### {TODAY}\n  - [ ] osv-4 check [ ] boxes\n- [ ] osv-5 untouched\n")
    task_log.complete_task("osv-4")
    assert read_log(log_path) == (
        f"### {TODAY}\n"
        f"  - [x] osv-4 check [ ] boxes ({STAMP})\n"
        "- [ ] osv-5 untouched\n"
    )


def test_add_note_after_task_and_existing_notes(task_log: TaskLog, clock: FakeClock, log_path: Path) -> None:
    task_log.add_task("osv", "first")
    task_log.add_task("osv", "second")

    task_log.add_note("osv-1", "one")
    clock.advance(minutes=10)
    task_log.add_note("osv-1", "two")

    assert read_log(log_path) == (
        f"### {TODAY}\n"
        "- [ ] osv-1 first\n"
        f"      - [{STAMP}] one\n"
        "      - [18/10/2026 09:15AM] two\n"
        "- [ ] osv-2 second\n"
    )


def test_add_then_note_round_trips_through_parser(task_log: TaskLog, log_path: Path) -> None:
    task_id = task_log.add_task("osv", "investigate")
    task_log.add_note(task_id, "looked at logs")

    task = find_task(parse_log(read_log(log_path), 5000), task_id)
    assert len(task.notes) == 1
    assert task.notes[0].text.endswith("] looked at logs")


def test_add_note_uses_configured_indent(settings: Settings, clock: FakeClock) -> None:
    settings.home.mkdir(parents=True)
    save_config(settings, Config(log_path=str(settings.default_log_path), note_indent=2))
    log = TaskLog(settings, clock=clock)
    log.init()
    log.add_task("osv", "t")
    log.add_note("osv-1", "n")
    assert read_log(settings.default_log_path).endswith(f"- [ ] osv-1 t\n  - [{STAMP}] n\n")


def test_add_note_rejects_empty_text(task_log: TaskLog) -> None:
    task_log.add_task("osv", "t")
    with pytest.raises(ValidationError):
        task_log.add_note("osv-1", "")


def test_mutations_normalize_missing_trailing_newline(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, f"### {TODAY}\n- [ ] osv-1 a")
    task_log.add_note("osv-1", "n")
    assert read_log(log_path) == f"### {TODAY}\n- [ ] osv-1 a\n      - [{STAMP}] n\n"


def test_get_today_returns_last_today_section(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, f"### 17/10/2026\n- [ ] a-1 old\n### {TODAY}\n- [ ] a-2 new\n")
    assert task_log.get_today() == f"### {TODAY}\n- [ ] a-2 new"


def test_get_today_without_section(task_log: TaskLog, log_path: Path) -> None:
    write_log(log_path, "### 17/10/2026\n")
    with pytest.raises(TaskLogError, match="no section for today"):
        task_log.get_today()


def test_today_sees_whole_log_but_ids_only_resolve_in_window(settings: Settings, clock: FakeClock) -> None:
    settings.home.mkdir(parents=True)
    save_config(settings, Config(log_path=str(settings.default_log_path), scan_window_lines=3))
    log = TaskLog(settings, clock=clock)
    log.init()
    write_log(
        settings.default_log_path,
        f"### {TODAY}\n- [ ] osv-1 early\n- [ ] osv-2 b\n- [ ] osv-3 c\n- [ ] osv-4 d\n",
    )

    assert "osv-1 early" in log.get_today()
    with pytest.raises(TaskNotFoundError):
        log.complete_task("osv-1")
    assert [t.id for t in log.list_tasks()] == ["osv-2", "osv-3", "osv-4"]


def test_search_over_mixed_tags(task_log: TaskLog) -> None:
    task_log.add_task("osv", "rotate keys")
    task_log.add_task("infra", "upgrade OSV scanner")
    task_log.add_task("infra", "resize disks")
    task_log.add_note("infra-2", "ping the osv folks")
    task_log.add_task("web", "header")

    assert [t.id for t in task_log.search("osv")] == ["osv-1", "infra-1", "infra-2"]
    assert [t.id for t in task_log.search("osv", tag="infra")] == ["infra-1", "infra-2"]
    with pytest.raises(ValidationError):
        task_log.search("  ")


def test_list_tasks_filters_done(task_log: TaskLog) -> None:
    task_log.add_task("osv", "a")
    task_log.add_task("osv", "b")
    task_log.complete_task("osv-1")
    assert [t.id for t in task_log.list_tasks()] == ["osv-1", "osv-2"]
    assert [t.id for t in task_log.list_tasks(include_done=False)] == ["osv-2"]


def test_ensure_today_section_cases() -> None:
    assert ensure_today_section("", TODAY) == f"### {TODAY}\n"
    assert ensure_today_section(f"### {TODAY}\n", TODAY) == f"### {TODAY}\n"
    assert ensure_today_section("### 01/01/2024", TODAY) == f"### 01/01/2024\n\n### {TODAY}\n"
