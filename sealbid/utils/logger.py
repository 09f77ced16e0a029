"""
Logging for sealbid.

All engine loggers hang off the "sealbid" logger; each subsystem module
takes a child with get_logger("<subsystem>"), e.g. "sealbid.commit_reveal".
Console output is colorized with colorlog. A plain-text file log can be
added under the configured log directory.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

import colorlog


ROOT_LOGGER = "sealbid"
LOG_FILE = "sealbid.log"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Rejected reveals and payout failures log at WARNING
LEVEL_COLORS = {
    "DEBUG": "white",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def _console_handler(level: int, stream: TextIO) -> logging.Handler:
    handler = colorlog.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS)
    )
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


class SealbidLogger:
    """Owns the handlers on the "sealbid" logger."""

    _configured = False
    _log_path: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
        force: bool = False,
        stream: Optional[TextIO] = None,
    ):
        """
        Install console (and optionally file) handlers.

        Args:
            level: Threshold for the whole sealbid logger tree
            log_dir: Directory for sealbid.log (./logs if None)
            log_to_file: Also write a plain-text log file
            force: Replace handlers installed by an earlier call
            stream: Console stream (stdout if None)
        """
        if cls._configured and not force:
            return

        root = logging.getLogger(ROOT_LOGGER)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(level)

        root.addHandler(_console_handler(level, stream or sys.stdout))

        cls._log_path = None
        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            root.addHandler(_file_handler(directory, level))
            cls._log_path = directory / LOG_FILE

        cls._configured = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Child logger for a subsystem; installs defaults on first use."""
        if not cls._configured:
            cls.setup()
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")

    @classmethod
    def log_path(cls) -> Optional[Path]:
        """Where the file log is being written, if anywhere."""
        return cls._log_path


def get_logger(name: str) -> logging.Logger:
    return SealbidLogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """Reconfigure logging, replacing any existing handlers."""
    SealbidLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file, force=True)
