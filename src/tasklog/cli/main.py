# src/tasklog/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the TaskLog for the configured home, then runs one
subcommand. Every TaskLogError is printed verbatim and exits non-zero.
"""

from __future__ import annotations

import argparse
import logging
import sys

from ..config import get_settings
from ..errors import TaskLogError
from ..logging_setup import setup_logging
from ..tasks.task_api import open_log
from .commands import registry

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tl", description="Minimal global markdown task log")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output on stderr.")
    parser.add_argument("command", nargs="?", default="help")
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    settings = get_settings()

    # choose console log level from settings.log_level, -v/-vv override
    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.WARNING)
    if ns.verbose:
        console_level = logging.INFO if ns.verbose == 1 else logging.DEBUG
    setup_logging(
        log_dir=settings.home if settings.file_logging else None,
        console_level=console_level,
    )

    log = open_log(settings)
    try:
        output = registry.handle(log, [ns.command, *ns.args])
    except TaskLogError as exc:
        logger.debug("Command %s failed", ns.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
