import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

# Constants
LOG_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5

NOISY_LOGGERS = ("urllib3", "web3", "aiohttp")

# Global formatter instance
FORMATTER = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _get_console_handler() -> logging.StreamHandler:
    """Creates a console handler writing to stderr, keeping stdout free for model output."""
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(FORMATTER)
    return console_handler


def _get_file_handler(log_file: str) -> RotatingFileHandler:
    file_handler = RotatingFileHandler(log_file, maxBytes=MAX_LOG_SIZE_BYTES, backupCount=LOG_BACKUP_COUNT)
    file_handler.setFormatter(FORMATTER)
    return file_handler


def configure_logging(filename: Optional[str] = None, log_level: Union[int, str] = logging.INFO) -> None:
    """
    Configures the root logger for the application.
    Call once from the embedding application; library code only uses get_logger().

    Args:
        filename: Optional path to a log file. If provided, file logging is enabled.
        log_level: The logging level, either numeric (logging.DEBUG) or a name ("DEBUG").
    """
    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to prevent duplicate logging
    if root_logger.hasHandlers():
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    root_logger.addHandler(_get_console_handler())

    if filename:
        try:
            root_logger.addHandler(_get_file_handler(filename))
        except OSError as e:
            sys.stderr.write(f"Warning: Could not set up file logging to '{filename}': {e}\n")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
