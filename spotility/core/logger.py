"""
Logging configuration for spotility.

This module sets up the logging system with multiple outputs:
    - Console: colored, tqdm-compatible messages (INFO, or DEBUG with --verbose)
    - log_full_<timestamp>.log: Complete log of all events (DEBUG and above)
    - log_errors_<timestamp>.log: Only ERROR and CRITICAL level messages

Everything printed to screen is also saved to file, then filtered into the
error file.

Log File Locations:
    Log files are created in a 'logs' directory next to the rating database.
    Each run gets its own timestamped files.

Usage:
    from spotility.core.logger import setup_logging, get_logger

    setup_logging(config.storage.log_dir)  # Call once at startup
    logger = get_logger(__name__)          # Get logger for each module

    logger.info("Updating rating database")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm

from spotility.utils import ensure_directory


# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    The liked songs download shows a tqdm bar on stderr. Plain logging to
    stderr would tear it apart; tqdm.write() prints the message above the
    active bar instead.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            # Resolved per call so pytest's capture of stderr is honored
            tqdm.write(msg, file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    Call this ONCE at application startup, after the configuration is
    loaded but before any command runs.

    Args:
        log_dir: Directory where log files will be created.
                 None disables the file handlers (console only).
        verbose: If True, the console shows DEBUG messages too.

    Behavior:
        1. Configure root logger level to DEBUG
        2. Remove any handlers left by a previous call
        3. Add colored console handler (INFO, DEBUG if verbose)
        4. If log_dir is given, create it and add:
           - log_full_{timestamp}.log (DEBUG)
           - log_errors_{timestamp}.log (ERROR+ via ErrorOnlyFilter)
        5. Quiet down chatty third-party loggers
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        ensure_directory(log_dir)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        file_formatter = logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT)

        full_handler = logging.FileHandler(
            log_dir / f"log_full_{timestamp}.log", mode="w", encoding="utf-8"
        )
        full_handler.setLevel(logging.DEBUG)
        full_handler.setFormatter(file_formatter)
        root_logger.addHandler(full_handler)

        error_handler = logging.FileHandler(
            log_dir / f"log_errors_{timestamp}.log", mode="w", encoding="utf-8"
        )
        error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
        error_handler.setFormatter(file_formatter)
        error_handler.addFilter(ErrorOnlyFilter())
        root_logger.addHandler(error_handler)

    # spotipy and urllib3 log every request at DEBUG
    for noisy in ("spotipy", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called have no
        handlers of their own; records propagate to the root logger
        once it is configured.
    """
    return logging.getLogger(name)


def format_rating_change(old: str, new: str) -> str:
    """
    Format an 'old -> new' rating message with colors.

    Args:
        old: Previous rating, already rendered (e.g. "ok" or "unrated").
        new: New rating, already rendered.

    Returns:
        Colored message string.
    """
    return f"{Colors.YELLOW}{old}{Colors.RESET} -> {Colors.GREEN}{new}{Colors.RESET}"


def shutdown_logging() -> None:
    """
    Flush and close every handler of the root logger.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)
