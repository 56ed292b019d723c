from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union


class _ConsoleNoiseFilter(logging.Filter):
    """Keep habitlite logs; let third-party libraries (streamlit, etc.) through at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("habitlite"):
            return True
        return record.levelno >= logging.WARNING


def console_level_from_env(default: int = logging.INFO) -> int:
    raw = os.environ.get("HABITLITE_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(raw) if raw else default
    return level if isinstance(level, int) else default


def setup_logging(
    *,
    console_level: Optional[int] = None,
    log_file: Optional[Union[str, Path]] = None,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Console handler (filtered) plus an optional file handler.

    Call once at startup. Library modules only create loggers.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level if console_level is not None else console_level_from_env())
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
