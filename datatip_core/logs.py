"""
Logging setup and exception recording.
"""
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("datatip")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the root logger for console output and an optional log file."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO),
                        format=LOG_FORMAT, handlers=handlers, force=True)


def log_exception(context: str, exc: BaseException) -> str:
    """Record exc with its traceback; returns the one-line message for dialogs."""
    message = f"{type(exc).__name__}: {exc}"
    logger.error("%s: %s", context, message, exc_info=(type(exc), exc, exc.__traceback__))
    return message
