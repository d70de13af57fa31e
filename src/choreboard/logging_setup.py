# src/choreboard/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "choreboard.log"

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers written to on every recurrence/sweep tick. They would interleave with
# the REPL prompt, so the console only shows their warnings.
TICK_LOGGERS: tuple[str, ...] = (
    "choreboard.chores.chore_scheduler",
    "choreboard.chores.engine",
    "choreboard.chores.chore_api",
    "choreboard.connectors.background",
)


def _under(name: str, parent: str) -> bool:
    return name == parent or name.startswith(parent + ".")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console filter for interactive use. The file log gets everything.

    choreboard records pass, except tick loggers below WARNING.
    Everything else (third-party libraries, py.warnings) needs ERROR+.
    """

    def __init__(self, quiet: tuple[str, ...] = TICK_LOGGERS) -> None:
        super().__init__()
        self._quiet = quiet

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not _under(name, "choreboard"):
            return record.levelno >= logging.ERROR
        if any(_under(name, q) for q in self._quiet):
            return record.levelno >= logging.WARNING
        return True


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(_ConsoleNoiseFilter())
    return handler


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.FileHandler(str(path), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/choreboard",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install the console and file handlers on the root logger, replacing any
    existing ones. Call once at startup. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.addHandler(_console_handler(console_level, formatter))
    root.addHandler(_file_handler(log_file, file_level, formatter))

    # warnings.warn(...) -> 'py.warnings'
    logging.captureWarnings(True)
    return log_file
