"""Thread-safe record of URLs already seen."""

from __future__ import annotations

import threading
from collections.abc import Iterator


class URLStorage:
    """A set of URL strings that can be shared between threads."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def seen(self, u: str) -> bool:
        """Return True if ``u`` has already been added."""
        with self._lock:
            return u in self._seen

    def add(self, u: str) -> None:
        """Record ``u`` as seen."""
        with self._lock:
            self._seen.add(u)

    def __contains__(self, u: object) -> bool:
        with self._lock:
            return u in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __iter__(self) -> Iterator[str]:
        """Iterate over a snapshot of the stored URLs."""
        with self._lock:
            snapshot = list(self._seen)
        return iter(snapshot)