"""Logging bootstrap driven by :class:`~labelsmith.services.settings.Settings`."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from ..services.settings import Settings

__all__ = ["setup_logging", "log_path_for", "get_log_path", "DEFAULT_LOG_DIR"]

DEFAULT_LOG_DIR = Path.home() / ".labelsmith" / "logs"
LOG_FILE_NAME = "labelsmith.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_QUIET_LOGGERS: tuple[str, ...] = ("ruamel", "jsonschema")
_LOG_PATH: Path | None = None


def log_path_for(settings: Settings) -> Path:
    """Return the log file ``settings`` points at."""

    directory = Path(settings.log_dir).expanduser() if settings.log_dir else DEFAULT_LOG_DIR
    return directory / LOG_FILE_NAME


def setup_logging(
    settings: Settings,
    *,
    console: bool | None = None,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Route the root logger into a rotating ``labelsmith.log``.

    ``settings.debug_logging`` selects DEBUG over INFO and, unless
    ``console`` says otherwise, echoes records to stderr. Repeated calls keep
    the first configuration unless ``force`` is set.
    """

    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    level = logging.DEBUG if settings.debug_logging else logging.INFO
    log_path = log_path_for(settings)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if settings.debug_logging if console is None else console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    """Return the active log file, if logging was configured."""

    return _LOG_PATH
