"""FIFO queue of crawl requests that tracks messages still being processed."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Method(Enum):
    """HTTP methods the crawler can use."""

    GET = "GET"
    HEAD = "HEAD"


@dataclass(eq=False)
class RequestMessage:
    """A URL to be requested by the crawler."""

    url: str
    ignore_domain: bool = False
    method: Method = Method.GET
    data: Any = None


class RequestQueue:
    """A thread-safe FIFO queue of request messages.

    A polled message stays active until it is acknowledged with its URL, so
    the queue is only inactive once it is empty and every message has been
    acknowledged.
    """

    def __init__(self) -> None:
        self._items: deque[RequestMessage] = deque()
        self._active: set[str] = set()
        self._closed = False
        self._cond = threading.Condition()

    def push(self, value: RequestMessage) -> None:
        """Add a message at the end of the queue."""
        with self._cond:
            if self._closed:
                raise RuntimeError("queue is closed")
            self._items.append(value)
            self._cond.notify()

    def poll(self, timeout: float | None = None) -> RequestMessage | None:
        """Remove and return the first message, waiting for one if needed.

        Returns None if the queue is closed or the timeout expires.
        """
        with self._cond:
            if not self._cond.wait_for(
                lambda: self._items or self._closed, timeout=timeout
            ):
                return None
            if self._closed:
                return None
            message = self._items.popleft()
            self._active.add(message.url)
            return message

    def ack(self, key: str) -> None:
        """Mark the message with URL ``key`` as processed."""
        with self._cond:
            if self._closed:
                raise RuntimeError("queue is closed")
            self._active.discard(key)

    def count(self) -> int:
        """Return the number of messages waiting to be polled."""
        with self._cond:
            if self._closed:
                return 0
            return len(self._items)

    def active(self) -> bool:
        """Return True if messages are waiting or still being processed."""
        with self._cond:
            if self._closed:
                return False
            return bool(self._items) or bool(self._active)

    def done(self) -> None:
        """Close the queue and wake up any waiting pollers."""
        with self._cond:
            self._closed = True
            self._items.clear()
            self._active.clear()
            self._cond.notify_all()