import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from moments.config import get_settings

settings = get_settings()

LOG_LEVEL = logging.DEBUG if settings.APP_DEBUG else logging.INFO
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024

logs_dir = Path(settings.LOG_DIR)
logs_dir.mkdir(parents=True, exist_ok=True)


def _rotating_handler(filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(logs_dir / filename, maxBytes=MAX_LOG_BYTES, backupCount=5)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


logger = logging.getLogger("moments")
logger.setLevel(LOG_LEVEL)
# re-import (reload, tests) must not stack handlers
logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
logger.addHandler(console_handler)
logger.addHandler(_rotating_handler("app.log", logging.INFO))
logger.addHandler(_rotating_handler("errors.log", logging.ERROR))


def get_logger(name: str = None) -> logging.Logger:
    """Child of the ``moments`` logger, e.g. ``moments.event_reminder``."""
    if name:
        return logger.getChild(name)
    return logger
