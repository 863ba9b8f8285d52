"""Logging setup: stdlib ``logging`` with a console handler and a daily file.

The console handler writes to stderr so the terminal chat on stdout stays
readable; ``configure(console_level=...)`` lets the chat turn it down.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_NOISY = ("httpx", "httpcore", "openai", "urllib3")

_installed: list[logging.Handler] = []


def _default_log_dir() -> Path:
    return Path(os.environ.get("JOBMATCHER_LOG_DIR") or Path(__file__).resolve().parent.parent / "logs")


def _level(name: str | None) -> int:
    return getattr(logging, (name or "INFO").upper(), logging.INFO)


def configure(
    level: str | None = None,
    *,
    console_level: str | None = None,
    log_dir: Path | None = None,
) -> None:
    """(Re)install jobmatcher's handlers on the root logger.

    *level* defaults to ``LOG_LEVEL`` (INFO). The file handler always
    records DEBUG and up; a log directory that cannot be created only
    disables the file.
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    root_level = _level(level or os.environ.get("LOG_LEVEL"))
    root.setLevel(logging.DEBUG)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_level(console_level) if console_level else root_level)
    console.setFormatter(formatter)
    _installed.append(console)

    directory = log_dir or _default_log_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(directory / f"jobmatcher_{datetime.now():%Y-%m-%d}.log", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        _installed.append(fh)
    except OSError:
        pass

    for handler in _installed:
        root.addHandler(handler)

    for name in _NOISY:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Named logger; the first call installs the default handlers."""
    if not _installed:
        configure()
    return logging.getLogger(name)
