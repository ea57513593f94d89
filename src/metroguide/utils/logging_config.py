"""
Logging configuration for MetroGuide.

Handlers are attached once, to the ``metroguide`` package logger. Module
loggers (``logging.getLogger(__name__)``) propagate to it, so a session's
perception, dialogue and speech records share one console/file output.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "metroguide"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _package_name(name: str) -> str:
    # Scripts run with ``python -m`` log as __main__
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return name
    return f"{PACKAGE_LOGGER}.{name}"


def setup_logger(
    name: str,
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
    verbose: bool = False,
) -> logging.Logger:
    """
    Get a logger whose records reach the package handlers.

    The console handler is added on first use; a file handler is added per
    distinct ``log_file``.

    Args:
        name: Logger name (usually __name__)
        log_file: Optional file path to also log to
        level: Logging level (default: INFO)
        verbose: If True, use DEBUG level

    Returns:
        Logger under the ``metroguide`` hierarchy
    """
    if verbose:
        level = logging.DEBUG

    package = logging.getLogger(PACKAGE_LOGGER)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not package.handlers:
        package.setLevel(level)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        package.addHandler(console_handler)
    elif verbose:
        set_verbosity(True)

    if log_file:
        log_file = Path(log_file).resolve()
        existing = {
            Path(h.baseFilename) for h in package.handlers if isinstance(h, logging.FileHandler)
        }
        if log_file not in existing:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            package.addHandler(file_handler)

    return logging.getLogger(_package_name(name))


def set_verbosity(debug: bool) -> None:
    """Switch the whole package between INFO and DEBUG (e.g. from ``ProjectConfig.debug``)."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if debug else logging.INFO)
