# src/daytasks/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO/DEBUG even in the file log.
NOISY_LIBRARIES = ("httpx", "httpcore", "asyncio")


class _ConsoleNoiseFilter(logging.Filter):
    """
    The console shares the terminal with the >>> prompt, so:
    - daytasks logs pass, except the scheduler below WARNING (it ticks every poll)
    - everything else, captured warnings included, only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith("daytasks."):
            return record.levelno >= logging.ERROR
        if record.name == "daytasks.tasks.task_scheduler":
            return record.levelno >= logging.WARNING
        return True


def level_from_name(name: str | int, default: int = logging.INFO) -> int:
    """'debug' / 'INFO' / 20 -> logging level; unknown names fall back to default."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/daytasks",
    console_level: str | int = logging.INFO,
    file_level: str | int = logging.DEBUG,
    quiet: Iterable[str] = NOISY_LIBRARIES,
) -> Path:
    """
    Route all logging to stderr (filtered) and to <log_dir>/daytasks.log (everything).

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output. Returns the log file path.
    """
    log_file = Path(log_dir) / "daytasks.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level_from_name(console_level))
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(level_from_name(file_level, logging.DEBUG))
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # warnings.warn(...) -> 'py.warnings' logger
    logging.captureWarnings(True)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
