"""
Console + rotating-file logging for the locale matrix runner.

Every module asks for a child logger (locale_matrix.verifier,
locale_matrix.catalog, ...) so the file log shows where a line came from.
"""

import logging
import logging.handlers
import os
import sys
import time

ROOT_LOGGER = "locale_matrix"
LOG_DIR = os.path.join(os.getcwd(), "logs")
LOG_FILE = os.path.join(LOG_DIR, "locale_matrix.log")

ENABLE_COLOR = os.getenv("CI", "false").lower() != "true"

COLOR = {
    "cyan": "\x1b[36;21m",
    "green": "\x1b[32;21m",
    "yellow": "\x1b[33;21m",
    "red": "\x1b[31;21m",
    "reset": "\x1b[0m",
}


def colorize(level, message):
    if not ENABLE_COLOR:
        return message
    if level >= logging.ERROR:
        return f"{COLOR['red']}{message}{COLOR['reset']}"
    elif level >= logging.WARNING:
        return f"{COLOR['yellow']}{message}{COLOR['reset']}"
    elif level >= logging.INFO:
        return f"{COLOR['green']}{message}{COLOR['reset']}"
    return f"{COLOR['cyan']}{message}{COLOR['reset']}"


class ColorFormatter(logging.Formatter):
    def format(self, record):
        ts = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.created))
        return colorize(record.levelno, f"{ts} [{record.levelname}] {record.name}: {record.getMessage()}")


def _configure_root(level: str = "INFO", log_file: str = LOG_FILE) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)

    # Avoid double-attaching handlers
    if root.handlers:
        return root

    root.setLevel(logging.DEBUG)
    root.propagate = False

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(getattr(logging, level.upper(), logging.INFO))
    ch.setFormatter(ColorFormatter())
    root.addHandler(ch)

    try:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10_000_000, backupCount=5, encoding="utf-8"
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s"))
        root.addHandler(fh)
    except OSError:
        root.warning("⚠️ Could not open log file %s, console logging only", log_file)

    return root


def get_logger(name: str = "", level: str = "INFO") -> logging.Logger:
    """Return ``locale_matrix.<name>``, configuring the shared handlers once."""
    _configure_root(level)
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_console_level(level: str) -> None:
    root = _configure_root(level)
    for handler in root.handlers:
        if not isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.setLevel(getattr(logging, level.upper(), logging.INFO))


def phase(logger, name):
    """Visual marker for run sections."""
    logger.info("=" * 50)
    logger.info(f"📍 {name}")
    logger.info("=" * 50)
