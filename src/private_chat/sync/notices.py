"""User-visible notices for mutation outcomes."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    source: str | None = None  # operation that produced it, e.g. "send_message"


NoticeListener = Callable[[Notice], None]


class NoticeBus:
    """Fan-out of notices to the presentation layer.

    Recent notices are kept in :attr:`history` so a view attached late can
    still show the last outcome.
    """

    def __init__(self, history_size: int = 50):
        self._listeners: list[NoticeListener] = []
        self.history: deque[Notice] = deque(maxlen=history_size)

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, notice: Notice) -> None:
        self.history.append(notice)
        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception("Notice listener failed")

    def success(self, message: str, source: str | None = None) -> None:
        self.publish(Notice(NoticeLevel.SUCCESS, message, source))

    def error(self, message: str, source: str | None = None) -> None:
        self.publish(Notice(NoticeLevel.ERROR, message, source))

    def info(self, message: str, source: str | None = None) -> None:
        self.publish(Notice(NoticeLevel.INFO, message, source))
