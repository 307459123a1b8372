"""
Logging configuration for the application.
Writes one log file per day under the configured log directory.
"""
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from pathlib import Path

from ..config import settings


def setup_logging(log_dir: str = None):
    """Configures root logging with a daily rotating file plus console output"""

    log_path = Path(log_dir or settings.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    today = datetime.now().strftime("%Y-%m-%d")
    log_file = log_path / f"gstdesk_{today}.log"

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    level = logging.DEBUG if settings.debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Avoid duplicate handlers when the app is created more than once
    root_logger.handlers.clear()

    formatter = logging.Formatter(log_format, date_format)
    handlers = [
        RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("gstdesk").setLevel(level)

    # SQL only on warnings and errors
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)

    logging.info(f"Logging configured. File: {log_file}")

    return root_logger


def get_logger(name: str = None):
    """Returns a logger under the gstdesk namespace"""
    if name:
        return logging.getLogger(f"gstdesk.{name}")
    return logging.getLogger("gstdesk")
