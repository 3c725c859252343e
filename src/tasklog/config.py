# src/tasklog/config.py

"""Settings loaded from environment variables (+ optional .env) and the persisted config record.

Two layers:
- Settings: where the installation lives (env driven, never written).
- Config: the flat record stored in <home>/config.toml (log path, date format, ...).
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

from .errors import FormatError, NotInitializedError
from .storage.atomic import atomic_write, read_text

ENV_PREFIX = "TL"

DEFAULT_DATE_FORMAT = "DD/MM/YYYY"
DEFAULT_NOTE_INDENT = 6
DEFAULT_SCAN_WINDOW_LINES = 5000

# Longest tokens first so "YYYY" wins over "YY".
_DATE_TOKENS = (("YYYY", "%Y"), ("YY", "%y"), ("DD", "%d"), ("MM", "%m"))


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def expand_tilde(path: str) -> Path:
    if path == "~" or path.startswith("~/"):
        return Path(path).expanduser()
    return Path(path)


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Logging ----
    log_level: str
    file_logging: bool

    # ---- Local paths ----
    home: Path

    @property
    def config_path(self) -> Path:
        return self.home / "config.toml"

    @property
    def state_path(self) -> Path:
        return self.home / "state.json"

    @property
    def lock_path(self) -> Path:
        return self.home / "lock"

    @property
    def default_log_path(self) -> Path:
        return self.home / "log.md"

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            log_level=_env(_k("LOG_LEVEL"), "WARNING"),
            file_logging=_env_bool(_k("LOG_FILE"), True),
            home=_env_path(_k("HOME"), Path("~/.config/tl").expanduser()),
        )


def get_settings() -> Settings:
    # Read on every call: the CLI and tests may change TL_HOME between invocations.
    return Settings.from_env()


# --------------------------------------------------------------------------------------
# Persisted config record
# --------------------------------------------------------------------------------------


def strftime_pattern(date_format: str) -> str:
    """Translate a DD/MM/YYYY style format into a strftime pattern."""
    out = date_format
    for token, directive in _DATE_TOKENS:
        out = out.replace(token, directive)
    return out


@dataclass(frozen=True, slots=True)
class Config:
    log_path: str
    date_format: str = DEFAULT_DATE_FORMAT
    note_indent: int = DEFAULT_NOTE_INDENT
    scan_window_lines: int = DEFAULT_SCAN_WINDOW_LINES

    @staticmethod
    def default(settings: Settings) -> "Config":
        return Config(log_path=str(settings.default_log_path))

    @property
    def resolved_log_path(self) -> Path:
        return expand_tilde(self.log_path)

    @property
    def date_pattern(self) -> str:
        return strftime_pattern(self.date_format)

    @property
    def timestamp_pattern(self) -> str:
        return f"{self.date_pattern} %I:%M%p"

    def with_log_path(self, log_path: str) -> "Config":
        return replace(self, log_path=log_path)


_TOML_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def _toml_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _TOML_ESCAPES:
            out.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            # Basic strings may not hold raw control characters.
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def render_config(config: Config) -> str:
    return (
        f"log_path = {_toml_string(config.log_path)}\n"
        f"date_format = {_toml_string(config.date_format)}\n"
        f"note_indent = {int(config.note_indent)}\n"
        f"scan_window_lines = {int(config.scan_window_lines)}\n"
    )


def parse_config(text: str, *, source: Path | None = None, default_log_path: str = "") -> Config:
    where = f" ({source})" if source else ""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise FormatError(f"invalid config{where}: {exc}") from exc

    log_path = data.get("log_path", default_log_path)
    date_format = data.get("date_format", DEFAULT_DATE_FORMAT)
    note_indent = data.get("note_indent", DEFAULT_NOTE_INDENT)
    window = data.get("scan_window_lines", DEFAULT_SCAN_WINDOW_LINES)

    if not isinstance(log_path, str) or not log_path.strip():
        raise FormatError(f"invalid config{where}: log_path must be a non-empty string")
    if not isinstance(date_format, str) or not date_format.strip():
        raise FormatError(f"invalid config{where}: date_format must be a non-empty string")
    # bool is an int subclass; reject it explicitly.
    if isinstance(note_indent, bool) or not isinstance(note_indent, int) or note_indent < 1:
        raise FormatError(f"invalid config{where}: note_indent must be a positive integer")
    if isinstance(window, bool) or not isinstance(window, int) or window < 1:
        raise FormatError(f"invalid config{where}: scan_window_lines must be a positive integer")

    return Config(
        log_path=log_path,
        date_format=date_format,
        note_indent=note_indent,
        scan_window_lines=window,
    )


def load_config(settings: Settings) -> Config:
    path = settings.config_path
    if not path.exists():
        raise NotInitializedError()
    return parse_config(
        read_text(path),
        source=path,
        default_log_path=str(settings.default_log_path),
    )


def save_config(settings: Settings, config: Config) -> None:
    atomic_write(settings.config_path, render_config(config))
