"""Logging setup for the playbook wizard: a rotating log file plus stderr."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["LOG_DIR_ENV", "setup_logging"]

LOG_DIR_ENV = "PLAYBOOK_WIZARD_LOG_DIR"
LOG_FILE_NAME = "playbook_wizard.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers that are too chatty below WARNING.
_QUIET_LOGGERS = ("asyncio", "httpx", "httpcore", "markdown_it")

_active_log_file: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    rotate_bytes: int = 1_000_000,
    keep_files: int = 3,
    force: bool = False,
) -> Path:
    """Install the wizard's root handlers and return the log file path.

    Repeated calls are no-ops unless *force* is set, in which case the
    root handlers are replaced (used to switch to debug after settings
    have been read).
    """

    global _active_log_file
    if _active_log_file is not None and not force:
        return _active_log_file

    directory = Path(log_dir or os.environ.get(LOG_DIR_ENV) or Path.home() / ".playbook_wizard" / "logs")
    directory = directory.expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILE_NAME

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=keep_files, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)

    quiet_level = max(level, logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    _active_log_file = log_file
    return log_file
