"""
User-facing notices raised by services.

Services receive a sink explicitly instead of reaching for a process-wide
toast singleton. Routers pass a CollectingSink and return its messages with
the response; everything else defaults to LoggingSink.
"""
import logging
from typing import List, Protocol

logger = logging.getLogger(__name__)

INFO = "info"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

_LOG_LEVELS = {
    INFO: logging.INFO,
    SUCCESS: logging.INFO,
    WARNING: logging.WARNING,
    ERROR: logging.ERROR,
}


class NotificationSink(Protocol):
    def notify(self, message: str, level: str = INFO) -> None:
        ...


class LoggingSink:
    def notify(self, message: str, level: str = INFO) -> None:
        logger.log(_LOG_LEVELS.get(level, logging.INFO), message)


class CollectingSink(LoggingSink):
    """Logs and keeps every notice so it can be returned to the client."""

    def __init__(self):
        self.messages: List[dict] = []

    def notify(self, message: str, level: str = INFO) -> None:
        super().notify(message, level)
        self.messages.append({"level": level, "message": message})
