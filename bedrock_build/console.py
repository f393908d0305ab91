"""
console.py

Responsibility: progress output for the terminal and the build log.

- Console: colored by severity with colorama (success green, warning yellow,
  error red).
- File: `.bedrock-build/logs/latest.log`, overwritten on every run, with
  timestamps.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from colorama import Fore, Style, just_fix_windows_console

ROOT_LOGGER_NAME = "bedrock_build"

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_LEVEL_COLORS = {
    logging.DEBUG: Style.DIM,
    logging.INFO: "",
    SUCCESS: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Style.BRIGHT + Fore.RED,
}


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno, "")
        if not color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"


def setup_logging(log_dir: str | Path | None = None, *, verbose: bool = False) -> logging.Logger:
    """
    Configure the `bedrock_build` logger. Safe to call more than once; previous
    handlers are replaced.
    """
    just_fix_windows_console()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(ColorFormatter("%(message)s"))
    logger.addHandler(console)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / "latest.log", mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")
        )
        logger.addHandler(file_handler)

    return logger


def log_success(logger: logging.Logger, msg: str, *args: object) -> None:
    logger.log(SUCCESS, msg, *args)
