import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import Config


def setup_logger(name: str = "mrlister", log_level=None, log_dir=None) -> logging.Logger:
    """
    Sets up the package logger with console (StreamHandler) and file (RotatingFileHandler) output.

    Module loggers (logging.getLogger(__name__)) propagate here.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level or Config.LOG_LEVEL)

    # Prevent adding handlers multiple times if logger is already set up
    if logger.handlers:
        return logger

    console_format = logging.Formatter("%(levelname)s %(name)s: %(message)s")
    file_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    log_path = Path(log_dir or Config.LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_path / "mrlister.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"  # 5 MB
    )
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    return logger
