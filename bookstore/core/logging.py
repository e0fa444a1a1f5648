import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from bookstore.config import settings


def setup_request_logger() -> logging.Logger:
    """
    Set up a rotating file logger for API requests.

    Returns:
        logging.Logger: Configured logger instance
    """
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    logger = logging.getLogger("bookstore.api_requests")
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    # Prevent duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    max_bytes = settings.LOG_MAX_SIZE_MB * 1024 * 1024

    file_handler = RotatingFileHandler(
        filename=logs_dir / "api_requests.log",
        maxBytes=max_bytes,
        backupCount=settings.LOG_MAX_FILES,
        encoding="utf-8",
    )

    # Millisecond precision: "2024-01-31 12:00:00.123"
    formatter = logging.Formatter(fmt="[%(asctime)s] %(message)s")
    formatter.default_time_format = "%Y-%m-%d %H:%M:%S"
    formatter.default_msec_format = "%s.%03d"

    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


def setup_app_logger() -> logging.Logger:
    """
    Set up a logger for application events and errors that outputs to stdout.

    Separate from api_logger which logs requests to rotating files.
    """
    logger = logging.getLogger("bookstore.app")
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# Global logger instances
api_logger = setup_request_logger()
app_logger = setup_app_logger()
