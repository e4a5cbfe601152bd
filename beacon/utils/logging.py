"""Logging setup for the beacon CLI."""

import logging
import sys
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from ..config.models import LoggingConfig

LOG_FILE_PREFIX = "beacon_"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"

# Libraries that log every HTTP request at INFO/DEBUG.
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


class ComponentFormatter(logging.Formatter):
    """Formats records as ``HH:MM:SS LEVEL component: message``.

    The component is the logger name relative to the ``beacon`` package,
    so ``beacon.executor.assign`` renders as ``executor.assign``.
    """

    def __init__(self, colorize: bool = False):
        super().__init__(datefmt="%H:%M:%S")
        self.colorize = colorize

    @staticmethod
    def component(name: str) -> str:
        if name == "beacon":
            return name
        return name.removeprefix("beacon.")

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.colorize and record.levelname in LEVEL_COLORS:
            level = f"{LEVEL_COLORS[record.levelname]}{level}{RESET}"

        line = (
            f"{self.formatTime(record, self.datefmt)} {level} "
            f"{self.component(record.name)}: {record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def prune_logs(log_dir: Path, retention_days: int, now: Optional[float] = None) -> list[Path]:
    """Delete beacon log files older than retention_days.

    Only files named ``beacon_*.log*`` are considered; anything else in the
    directory is left alone. A non-positive retention keeps everything.

    Returns:
        Paths that were removed
    """
    if retention_days <= 0 or not log_dir.is_dir():
        return []

    cutoff = (time.time() if now is None else now) - retention_days * 86400
    removed = []
    for path in sorted(log_dir.glob(f"{LOG_FILE_PREFIX}*.log*")):
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed.append(path)
        except FileNotFoundError:
            continue
    return removed


def _file_handler(config: LoggingConfig) -> RotatingFileHandler:
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    prune_logs(log_dir, config.retention_days)

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    handler = RotatingFileHandler(
        log_dir / f"{LOG_FILE_PREFIX}{stamp}.log",
        maxBytes=config.rotation_mb * 1024 * 1024,
        backupCount=max(1, config.retention_days),
        encoding="utf-8",
    )
    handler.setFormatter(ComponentFormatter())
    return handler


def configure_logging(
    config: LoggingConfig,
    verbose: bool = False,
    console: Optional[bool] = None,
) -> Optional[Path]:
    """Install handlers on the root logger from a LoggingConfig.

    Any handlers from an earlier call are replaced, so commands can call this
    again once the config file has been read.

    Args:
        config: Logging section of the beacon config
        verbose: Force DEBUG level (and console output unless console is given)
        console: Log to stderr; defaults to verbose

    Returns:
        Path of the log file, or None when config.log_dir is unset
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG if verbose else config.level)

    if verbose if console is None else console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(ComponentFormatter(colorize=sys.stderr.isatty()))
        root.addHandler(stream)

    log_file = None
    if config.log_dir is not None:
        file_handler = _file_handler(config)
        root.addHandler(file_handler)
        log_file = Path(file_handler.baseFilename)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
