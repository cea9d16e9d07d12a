"""Bounded memoization with wholesale reset."""

from __future__ import annotations

from typing import Callable, Generic, Hashable, TypeVar
import logging

logger = logging.getLogger(__name__)

DEFAULT_MEMOIZE_LIMIT = 1000

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BoundedMemo(Generic[K, V]):
    """Cache ``fn(key)`` results, dropping every entry once ``limit`` is hit.

    Entries are never evicted one by one: when the counter reaches the
    limit the whole table is cleared and filling starts over.
    """

    def __init__(self, fn: Callable[[K], V], limit: int = DEFAULT_MEMOIZE_LIMIT) -> None:
        self._fn = fn
        self.limit = max(1, int(limit))
        self._memo: dict[K, V] = {}
        self.resets = 0

    def __call__(self, key: K) -> V:
        if key in self._memo:
            return self._memo[key]
        if len(self._memo) >= self.limit:
            logger.debug("Memo for %s reached %d entries; resetting", self._fn.__name__, self.limit)
            self._memo = {}
            self.resets += 1
        value = self._fn(key)
        self._memo[key] = value
        return value

    def __len__(self) -> int:
        return len(self._memo)

    def __contains__(self, key: object) -> bool:
        return key in self._memo

    def clear(self) -> None:
        self._memo = {}
