"""
User-visible notices.

The core never raises for business-rule outcomes; it reports them to a
Notifier and carries on.
"""
import logging
from typing import List, Protocol

from logger import get_logger
from schemas import Notice, Severity

logger = get_logger(__name__)

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class Notifier(Protocol):
    def notify(self, notice: Notice) -> None:
        ...


class NoticeCollector:
    """Buffers notices so the API can return them with the response."""

    def __init__(self):
        self.notices: List[Notice] = []

    def notify(self, notice: Notice) -> None:
        logger.log(_LEVELS[notice.severity], "%s: %s", notice.title, notice.description)
        self.notices.append(notice)


def info(title: str, description: str) -> Notice:
    return Notice(title=title, description=description, severity=Severity.INFO)


def warning(title: str, description: str) -> Notice:
    return Notice(title=title, description=description, severity=Severity.WARNING)


def error(title: str, description: str) -> Notice:
    return Notice(title=title, description=description, severity=Severity.ERROR)
