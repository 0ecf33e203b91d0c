from __future__ import annotations

import itertools
import logging
from threading import Lock
from typing import Callable, Dict, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestSequencer:
    """Last-write-wins guard for asynchronous results.

    Each request for a key gets a monotonically increasing token; a result is
    applied only while its token is still the latest one issued for that key,
    so a slow response never overwrites a newer one.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: Dict[Hashable, int] = {}
        self._lock = Lock()

    def issue(self, key: Hashable) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest[key] = token
            return token

    def is_current(self, key: Hashable, token: int) -> bool:
        with self._lock:
            return self._latest.get(key) == token

    def forget(self, key: Hashable) -> None:
        with self._lock:
            self._latest.pop(key, None)

    def apply(self, key: Hashable, token: int, callback: Callable[[], T]) -> Optional[T]:
        if not self.is_current(key, token):
            logger.debug("Discarding stale result", extra={"key": str(key), "token": token})
            return None
        return callback()
