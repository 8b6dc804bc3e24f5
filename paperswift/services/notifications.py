from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    level: str
    message: str


class NotificationCenter:
    """Toast queue shown on the next rendered page."""

    def __init__(self, capacity: int = 50) -> None:
        self._lock = threading.Lock()
        self._queue: deque[Notification] = deque(maxlen=capacity)

    def push(self, level: str, message: str) -> None:
        with self._lock:
            self._queue.append(Notification(level=level, message=message))
        logger.debug('notification level=%s message=%s', level, message)

    def success(self, message: str) -> None:
        self.push('success', message)

    def error(self, message: str) -> None:
        self.push('error', message)

    def info(self, message: str) -> None:
        self.push('info', message)

    def drain(self) -> list[Notification]:
        with self._lock:
            items = list(self._queue)
            self._queue.clear()
        return items
